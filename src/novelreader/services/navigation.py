"""Chapter/page position and the page <-> cursor offset arithmetic."""

from __future__ import annotations

import logging

from novelreader.models import Chapter, Page

logger = logging.getLogger(__name__)


class NavigationState:
    """Current chapter and page of a paginated document.

    Out-of-range moves are no-ops: every transition returns ``False`` instead of
    raising. Stopping an active reading session on user navigation is the
    caller's job (see ``ReaderSession``); the scheduler uses ``advance_page``
    for automatic page turns while reading continues.
    """

    def __init__(self, chapters: list[Chapter], pages: list[list[Page]]):
        if not chapters or len(chapters) != len(pages):
            raise ValueError("Each chapter needs a page list")
        self.chapters = chapters
        self.pages = pages
        self.chapter_index = 0
        self.page_index = 0
        self._chapter_words = [chapter.word_count for chapter in chapters]

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def chapter_count(self) -> int:
        return len(self.chapters)

    def total_pages(self, chapter_index: int | None = None) -> int:
        index = self.chapter_index if chapter_index is None else chapter_index
        if not 0 <= index < self.chapter_count:
            return 0
        return len(self.pages[index])

    @property
    def current_chapter(self) -> Chapter:
        return self.chapters[self.chapter_index]

    @property
    def current_page(self) -> Page | None:
        pages = self.pages[self.chapter_index]
        return pages[self.page_index] if self.page_index < len(pages) else None

    @property
    def is_first_page(self) -> bool:
        return self.page_index == 0

    @property
    def is_last_page(self) -> bool:
        return self.page_index >= self.total_pages() - 1

    @property
    def is_first_chapter(self) -> bool:
        return self.chapter_index == 0

    @property
    def is_last_chapter(self) -> bool:
        return self.chapter_index == self.chapter_count - 1

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def next_page(self) -> bool:
        """Advance one page, rolling over into the next chapter at a chapter's end."""
        if not self.is_last_page:
            self.page_index += 1
            return True
        return self.next_chapter()

    def previous_page(self) -> bool:
        if self.page_index > 0:
            self.page_index -= 1
            return True
        return False

    def next_chapter(self) -> bool:
        if self.is_last_chapter:
            return False
        return self.go_to_chapter(self.chapter_index + 1)

    def previous_chapter(self) -> bool:
        if self.is_first_chapter:
            return False
        return self.go_to_chapter(self.chapter_index - 1)

    def go_to_chapter(self, chapter_index: int) -> bool:
        if not 0 <= chapter_index < self.chapter_count:
            logger.debug(f"Ignoring jump to missing chapter {chapter_index}")
            return False
        self.chapter_index = chapter_index
        self.page_index = 0
        return True

    def go_to(self, chapter_index: int, page_index: int) -> bool:
        """Jump to an explicit position, e.g. one restored from saved progress."""
        if not 0 <= chapter_index < self.chapter_count:
            return False
        if not 0 <= page_index < max(1, self.total_pages(chapter_index)):
            return False
        self.chapter_index = chapter_index
        self.page_index = page_index
        return True

    # ------------------------------------------------------------------
    # Offsets
    # ------------------------------------------------------------------
    def word_offset(self, chapter_index: int, page_index: int) -> int:
        """Words preceding the first word of the given page."""
        offset = sum(self._chapter_words[:chapter_index])
        if 0 <= chapter_index < self.chapter_count:
            offset += sum(page.word_count for page in self.pages[chapter_index][:page_index])
        return offset

    def current_page_end(self) -> int:
        """Global word count up to and including the current page."""
        return self.word_offset(self.chapter_index, self.page_index + 1)

    def advance_page(self, cursor: int) -> bool:
        """Turn one page if *cursor* has moved past the end of the current page."""
        if cursor > self.current_page_end():
            return self.next_page()
        return False
