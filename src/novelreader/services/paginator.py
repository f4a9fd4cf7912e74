from __future__ import annotations

from novelreader.models import Chapter, Page

DEFAULT_WORDS_PER_PAGE = 400


def paginate(
    chapter: Chapter, words_per_page: int = DEFAULT_WORDS_PER_PAGE, *, chapter_index: int = 0
) -> list[Page]:
    """Split *chapter* into pages of *words_per_page* words, the last one possibly shorter.

    Page text is the words re-joined with single spaces; the original layout is
    not preserved.
    """
    if words_per_page < 1:
        raise ValueError(f"words_per_page must be positive, got {words_per_page}")

    words = chapter.text.split()
    pages = []
    for page_index, start in enumerate(range(0, len(words), words_per_page)):
        window = words[start : start + words_per_page]
        pages.append(
            Page(
                chapter_index=chapter_index,
                page_index=page_index,
                text=" ".join(window),
                word_count=len(window),
            )
        )
    return pages


def paginate_all(chapters: list[Chapter], words_per_page: int = DEFAULT_WORDS_PER_PAGE) -> list[list[Page]]:
    """Paginate every chapter independently."""
    return [
        paginate(chapter, words_per_page, chapter_index=index)
        for index, chapter in enumerate(chapters)
    ]
