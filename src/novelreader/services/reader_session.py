"""One open document: loading, user navigation, and progress write-back."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from novelreader.infrastructure.audio.base import AudioPlayer
from novelreader.infrastructure.tts.speech_service import SpeechService, provider_kind_for_voice
from novelreader.models import Document, PlaybackState, ProgressRecord, ProviderKind, SpeechSettings, VoiceSelection
from novelreader.services.chapter_segmenter import ChapterSegmenter
from novelreader.services.navigation import NavigationState
from novelreader.services.paginator import paginate_all
from novelreader.services.phrase_extractor import Sentence, split_sentences
from novelreader.services.playback import (
    EventListener,
    PlaybackScheduler,
    ReaderEvent,
    ReaderEventKind,
    ReadingContext,
    SchedulerTimings,
)
from novelreader.services.progress_store import ProgressStore
from novelreader.services.text_extraction import ExtractionError, extract_text
from novelreader.services.word_index import WordIndex
from novelreader.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageView:
    """Everything the presentation layer needs to draw the current page."""

    source_name: str
    chapter_index: int
    chapter_title: str
    chapter_count: int
    page_index: int
    total_pages: int
    text: str
    sentences: list[Sentence]
    word_offset: int
    is_first_page: bool
    is_last_page: bool
    is_first_chapter: bool
    is_last_chapter: bool
    progress: float
    state: PlaybackState


class ReaderSession:
    """Owns the open document and routes user actions to the scheduler.

    User navigation while reading stops playback and moves the cursor to the
    first word of the new page; automatic page turns during reading only
    save progress.
    """

    def __init__(
        self,
        store: ProgressStore,
        speech: SpeechService,
        player: AudioPlayer,
        settings: Settings | None = None,
        segmenter: ChapterSegmenter | None = None,
    ) -> None:
        self.store = store
        self.speech = speech
        self.player = player
        self.settings = settings or get_settings()
        self.segmenter = segmenter or ChapterSegmenter()
        self.speech_settings: SpeechSettings = self.settings.speech_settings()

        self.document: Document | None = None
        self.scheduler: PlaybackScheduler | None = None
        self._listeners: list[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------
    def load_file(self, path: str | Path) -> PageView:
        """Extract and open *path*; on ExtractionError the open document is kept."""
        path = Path(path)
        text = extract_text(path)
        return self.load_text(text, path.name)

    def load_text(self, text: str, source_name: str = "Pasted Text") -> PageView:
        if not text or not text.strip():
            raise ExtractionError("No text found")

        self.close()
        chapters = self.segmenter.segment(text)
        navigation = NavigationState(chapters, paginate_all(chapters, self.settings.words_per_page))
        context = ReadingContext(
            word_index=WordIndex(text),
            navigation=navigation,
            speech=self.speech_settings,
        )
        self._restore(source_name, context)

        self.document = Document(raw_text=text, source_name=source_name)
        self.scheduler = PlaybackScheduler(
            context,
            self.speech,
            self.player,
            skip_words=self.settings.skip_words,
            max_phrase_words=self.settings.max_phrase_words,
            timings=SchedulerTimings.from_settings(self.settings),
            on_event=self._on_scheduler_event,
            save_progress=self.save_progress,
        )
        logger.info(
            f"Loaded '{source_name}': {len(chapters)} chapters, "
            f"{context.word_index.word_count} words"
        )
        self._notify(ReaderEvent(ReaderEventKind.STATUS, message=f"Ready to read ({len(chapters)} chapters)"))
        return self.render_page()

    def close(self) -> None:
        """Stop reading and forget the document."""
        if self.scheduler is not None:
            self.scheduler.stop()
        self.scheduler = None
        self.document = None

    def _restore(self, source_name: str, context: ReadingContext) -> None:
        record = self.store.load(source_name)
        if record is None:
            return
        nav = context.navigation
        context.cursor = context.word_index.clamp(record.word_cursor)
        chapter_index = record.chapter_index if 0 <= record.chapter_index < nav.chapter_count else 0
        page_index = record.page_index
        if not 0 <= page_index < nav.total_pages(chapter_index):
            page_index = 0
        if (chapter_index, page_index) != (record.chapter_index, record.page_index):
            logger.warning(
                f"Saved position chapter {record.chapter_index}, page {record.page_index} "
                f"no longer exists in '{source_name}'"
            )
        nav.go_to(chapter_index, page_index)
        logger.info(f"Resuming '{source_name}' at chapter {chapter_index}, page {page_index}, word {context.cursor}")

    # ------------------------------------------------------------------
    # Rendering and progress
    # ------------------------------------------------------------------
    @property
    def context(self) -> ReadingContext:
        if self.scheduler is None:
            raise RuntimeError("No document loaded")
        return self.scheduler.context

    @property
    def navigation(self) -> NavigationState:
        return self.context.navigation

    def render_page(self) -> PageView:
        """Describe the current page and save the reading position."""
        nav = self.navigation
        page = nav.current_page
        text = page.text if page else ""
        view = PageView(
            source_name=self.document.source_name,
            chapter_index=nav.chapter_index,
            chapter_title=nav.current_chapter.title,
            chapter_count=nav.chapter_count,
            page_index=nav.page_index,
            total_pages=nav.total_pages(),
            text=text,
            sentences=split_sentences(text) if text else [],
            word_offset=nav.word_offset(nav.chapter_index, nav.page_index),
            is_first_page=nav.is_first_page,
            is_last_page=nav.is_last_page,
            is_first_chapter=nav.is_first_chapter,
            is_last_chapter=nav.is_last_chapter,
            progress=self.scheduler.progress,
            state=self.scheduler.state,
        )
        self.save_progress()
        return view

    def save_progress(self) -> None:
        if self.document is None or self.scheduler is None:
            return
        nav = self.navigation
        self.store.save(
            self.document.source_name,
            ProgressRecord(
                source_name=self.document.source_name,
                chapter_index=nav.chapter_index,
                page_index=nav.page_index,
                word_cursor=self.context.cursor,
            ),
        )

    # ------------------------------------------------------------------
    # User navigation
    # ------------------------------------------------------------------
    def next_page(self, *, continue_reading: bool = False) -> PageView | None:
        return self._navigate(self.navigation.next_page, continue_reading)

    def previous_page(self, *, continue_reading: bool = False) -> PageView | None:
        return self._navigate(self.navigation.previous_page, continue_reading)

    def next_chapter(self, *, continue_reading: bool = False) -> PageView | None:
        return self._navigate(self.navigation.next_chapter, continue_reading)

    def previous_chapter(self, *, continue_reading: bool = False) -> PageView | None:
        return self._navigate(self.navigation.previous_chapter, continue_reading)

    def go_to_chapter(self, chapter_index: int, *, continue_reading: bool = False) -> PageView | None:
        return self._navigate(lambda: self.navigation.go_to_chapter(chapter_index), continue_reading)

    def go_to_page(self, chapter_index: int, page_index: int, *, continue_reading: bool = False) -> PageView | None:
        return self._navigate(lambda: self.navigation.go_to(chapter_index, page_index), continue_reading)

    def _navigate(self, move: Callable[[], bool], continue_reading: bool) -> PageView | None:
        """Apply *move*; None when it was out of range and nothing changed."""
        if not move():
            return None
        scheduler = self.scheduler
        was_reading = scheduler.state is PlaybackState.READING
        # The page being narrated changed under the scheduler.
        scheduler.stop()
        nav = self.navigation
        scheduler.seek(nav.word_offset(nav.chapter_index, nav.page_index))
        view = self.render_page()
        if continue_reading and was_reading:
            scheduler.play()
        return view

    def jump_to_sentence(self, sentence_index: int, *, restart: bool = True) -> int | None:
        """Move the cursor to a sentence of the current page and read from there.

        Returns the new cursor, or None when the page has no such sentence.
        """
        nav = self.navigation
        page = nav.current_page
        sentences = split_sentences(page.text) if page else []
        if not 0 <= sentence_index < len(sentences):
            return None

        target = nav.word_offset(nav.chapter_index, nav.page_index) + sentences[sentence_index].words_before
        scheduler = self.scheduler
        scheduler.stop()
        word_index = self.context.word_index
        scheduler.seek(word_index.cursor_for_word_count(target))

        cursor = scheduler.cursor
        sentence_words = len(sentences[sentence_index].text.split())
        self._notify(
            ReaderEvent(ReaderEventKind.HIGHLIGHT, span=word_index.char_span(cursor, cursor + sentence_words))
        )
        self.save_progress()
        if restart:
            scheduler.play()
        return cursor

    # ------------------------------------------------------------------
    # Playback controls
    # ------------------------------------------------------------------
    def play(self) -> bool:
        return self.scheduler.play()

    def toggle(self) -> bool:
        return self.scheduler.toggle()

    def pause(self) -> bool:
        return self.scheduler.pause()

    def resume(self) -> bool:
        return self.scheduler.resume()

    def stop(self) -> bool:
        return self.scheduler.stop()

    def skip(self) -> bool:
        return self.scheduler.skip()

    def update_speech(
        self,
        *,
        voice_id: str | None = None,
        provider_kind: ProviderKind | None = None,
        speed: float | None = None,
        pitch: float | None = None,
    ) -> SpeechSettings:
        """Change voice, speed or pitch; applies from the next phrase."""
        current = self.speech_settings
        voice = current.voice
        if voice_id is not None:
            kind = provider_kind or provider_kind_for_voice(self.speech, voice_id) or voice.provider_kind
            voice = VoiceSelection(voice_id=voice_id, provider_kind=kind)
        elif provider_kind is not None:
            voice = VoiceSelection(voice_id=voice.voice_id, provider_kind=provider_kind)

        self.speech_settings = SpeechSettings(
            voice=voice,
            speed=current.speed if speed is None else speed,
            pitch=current.pitch if pitch is None else pitch,
        )
        if self.scheduler is not None:
            self.scheduler.set_speech(self.speech_settings)
        return self.speech_settings

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def _on_scheduler_event(self, event: ReaderEvent) -> None:
        if event.kind is ReaderEventKind.PAGE_TURNED:
            self.save_progress()
        self._notify(event)

    def _notify(self, event: ReaderEvent) -> None:
        for listener in self._listeners:
            listener(event)
