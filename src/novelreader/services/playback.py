"""Play/pause/stop/skip state machine driving phrase synthesis and audio playback."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from novelreader.infrastructure.audio.base import AudioClip, AudioPlayer, PlaybackError
from novelreader.infrastructure.tts.speech_service import SpeechService
from novelreader.models import PlaybackState, SpeechSettings
from novelreader.services.navigation import NavigationState
from novelreader.services.phrase_extractor import DEFAULT_MAX_PHRASE_WORDS, Phrase, next_phrase
from novelreader.services.word_index import WordIndex
from novelreader.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_SKIP_WORDS = 50


class ReaderEventKind(str, Enum):
    """Notifications for the presentation layer."""

    STATE_CHANGED = "state_changed"
    STATUS = "status"
    PROGRESS = "progress"
    HIGHLIGHT = "highlight"
    PAGE_TURNED = "page_turned"
    ERROR = "error"
    FINISHED = "finished"


@dataclass(frozen=True)
class ReaderEvent:
    kind: ReaderEventKind
    state: PlaybackState | None = None
    message: str | None = None
    progress: float | None = None
    span: tuple[int, int] | None = None  # character range of the phrase being read
    chapter_index: int | None = None
    page_index: int | None = None


EventListener = Callable[[ReaderEvent], None]


@dataclass
class ReadingContext:
    """Live state of the open document. Only the scheduler mutates it."""

    word_index: WordIndex
    navigation: NavigationState
    speech: SpeechSettings
    cursor: int = 0
    state: PlaybackState = PlaybackState.IDLE
    generation: int = 0


@dataclass(frozen=True)
class SchedulerTimings:
    """Delays, in seconds, between phrases and after recoverable failures."""

    no_audio_retry_delay: float = 0.5
    synthesis_error_delay: float = 1.0
    playback_error_delay: float = 0.5
    unlock_retry_delay: float = 0.2
    phrase_pacing_delay: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> SchedulerTimings:
        return cls(
            no_audio_retry_delay=settings.no_audio_retry_delay,
            synthesis_error_delay=settings.synthesis_error_delay,
            playback_error_delay=settings.playback_error_delay,
            unlock_retry_delay=settings.unlock_retry_delay,
            phrase_pacing_delay=settings.phrase_pacing_delay,
        )


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class PlaybackScheduler:
    """Reads the document aloud one phrase at a time.

    Phrases are narrated strictly in cursor order: the phrase after ``k`` is
    not extracted before ``k``'s audio has finished, failed, or been skipped.
    Every launch of the phrase loop carries a generation number; ``stop``,
    ``skip`` and finishing bump it, so completions of discarded work are
    ignored even if they arrive late.
    """

    def __init__(
        self,
        context: ReadingContext,
        speech: SpeechService,
        player: AudioPlayer,
        *,
        skip_words: int = DEFAULT_SKIP_WORDS,
        max_phrase_words: int = DEFAULT_MAX_PHRASE_WORDS,
        timings: SchedulerTimings | None = None,
        on_event: EventListener | None = None,
        save_progress: Callable[[], None] | None = None,
    ) -> None:
        self.context = context
        self.speech = speech
        self.player = player
        self.skip_words = skip_words
        self.max_phrase_words = max_phrase_words
        self.timings = timings or SchedulerTimings()
        self._listeners: list[EventListener] = [on_event] if on_event else []
        self._save_progress = save_progress

        self._task: asyncio.Task | None = None
        self._resumed = asyncio.Event()
        self._clip: AudioClip | None = None
        self._audio_active = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        return self.context.state

    @property
    def cursor(self) -> int:
        return self.context.cursor

    @property
    def generation(self) -> int:
        return self.context.generation

    @property
    def progress(self) -> float:
        return self.context.word_index.progress(self.context.cursor)

    @property
    def is_active(self) -> bool:
        """True while reading or paused; stop and skip are only offered then."""
        return self.context.state in (PlaybackState.READING, PlaybackState.PAUSED)

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def play(self) -> bool:
        """Start reading from the cursor, or resume when paused."""
        state = self.context.state
        if state is PlaybackState.READING:
            return False
        if state is PlaybackState.PAUSED:
            return self.resume()
        if self.context.word_index.at_end(self.context.cursor):
            self._status("Nothing left to read")
            return False

        logger.info(f"Start reading at word {self.context.cursor}")
        self._set_state(PlaybackState.READING)
        self._resumed.set()
        self._launch()
        return True

    def toggle(self) -> bool:
        """Play/pause button semantics."""
        if self.context.state is PlaybackState.READING:
            return self.pause()
        return self.play()

    def pause(self) -> bool:
        if self.context.state is not PlaybackState.READING:
            return False
        self._resumed.clear()
        if self._audio_active:
            try:
                self.player.pause()
            except PlaybackError as exc:
                self._drop_failed_audio(exc)
        self._set_state(PlaybackState.PAUSED)
        self._status("Paused")
        return True

    def resume(self) -> bool:
        if self.context.state is not PlaybackState.PAUSED:
            return False
        self._set_state(PlaybackState.READING)
        if self._audio_active:
            try:
                self.player.resume()
            except PlaybackError as exc:
                self._drop_failed_audio(exc)
        elif self._task is None or self._task.done():
            self._launch()
        self._resumed.set()
        self._status_progress()
        return True

    def stop(self) -> bool:
        """Discard current audio and keep the cursor where it is."""
        if not self.is_active:
            return False
        logger.info(f"Stop reading at word {self.context.cursor}")
        self._halt()
        self._set_state(PlaybackState.STOPPED)
        self._emit(ReaderEvent(ReaderEventKind.HIGHLIGHT))
        self._emit_progress()
        self._status("Stopped")
        self._persist()
        return True

    def skip(self) -> bool:
        """Jump ahead ``skip_words`` words, dropping the phrase being read."""
        ctx = self.context
        if not ctx.word_index.word_count:
            return False
        was_reading = ctx.state is PlaybackState.READING
        self._halt()
        ctx.cursor = ctx.word_index.clamp(ctx.cursor + self.skip_words)
        logger.debug(f"Skipped to word {ctx.cursor}")
        self._emit_progress()
        self._check_page_turn()
        if was_reading:
            self._resumed.set()
            self._launch()
        return True

    def seek(self, cursor: int) -> None:
        """Move the cursor while not reading; callers stop playback first."""
        if self.is_active:
            raise RuntimeError("Stop reading before moving the cursor")
        self.context.cursor = self.context.word_index.clamp(cursor)
        self._emit_progress()

    def set_speech(self, speech: SpeechSettings) -> None:
        """Voice/speed/pitch used from the next phrase on."""
        self.context.speech = speech

    async def wait_idle(self) -> None:
        """Wait until no phrase loop is running. Blocks for as long as reading is paused."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    # ------------------------------------------------------------------
    # Phrase loop
    # ------------------------------------------------------------------
    def _launch(self) -> None:
        self.context.generation += 1
        generation = self.context.generation
        self._task = asyncio.create_task(self._run(generation))

    def _is_current(self, generation: int) -> bool:
        return (
            generation == self.context.generation
            and self.context.state in (PlaybackState.READING, PlaybackState.PAUSED)
        )

    async def _run(self, generation: int) -> None:
        try:
            await self._read_phrases(generation)
        except Exception as exc:
            logger.exception(f"Reading stopped by an unexpected error: {exc}")
            if self._is_current(generation):
                self._error(f"Reading stopped: {exc}")
                self.stop()

    async def _read_phrases(self, generation: int) -> None:
        ctx = self.context
        while self._is_current(generation):
            await self._resumed.wait()
            if not self._is_current(generation):
                return

            phrase = next_phrase(ctx.word_index, ctx.cursor, self.max_phrase_words)
            if phrase is None:
                self._finish()
                return
            ctx.cursor = phrase.end
            logger.debug(f"Phrase {phrase.start}-{phrase.end}: {phrase.text[:60]!r}")

            delay = await self._speak(phrase, generation)
            if not self._is_current(generation):
                return
            if delay:
                await asyncio.sleep(delay)

    async def _speak(self, phrase: Phrase, generation: int) -> float:
        """Synthesize and play *phrase*; return the pause before the next one."""
        try:
            clip = await self.speech.synthesize(phrase.text, self.context.speech)
        except Exception as exc:
            logger.error(f"TTS error: {exc}")
            self._error(f"TTS Error: {exc}")
            return self.timings.synthesis_error_delay

        if not self._is_current(generation):
            if clip is not None:
                clip.release()
            return 0.0
        if clip is None:
            self._error("Speech generation failed, skipping phrase")
            return self.timings.no_audio_retry_delay

        self._clip = clip
        try:
            await self.player.load(clip)
            if not await self._still_wanted(generation):
                return 0.0
            if not await self._start_with_retry(generation):
                return 0.0
            self._audio_active = True
            self._status_progress()
            self._emit(
                ReaderEvent(
                    ReaderEventKind.HIGHLIGHT,
                    span=self.context.word_index.char_span(phrase.start, phrase.end),
                )
            )
            await self.player.wait_finished()
        except PlaybackError as exc:
            if not self._is_current(generation):
                return 0.0
            self._drop_failed_audio(exc)
            return self.timings.playback_error_delay

        if not self._is_current(generation):
            return 0.0
        self._audio_active = False
        self._clip = None
        clip.release()
        self._emit_progress()
        self._check_page_turn()
        return self.timings.phrase_pacing_delay

    async def _still_wanted(self, generation: int) -> bool:
        """Hold while paused; False once this generation has been discarded."""
        if not self._is_current(generation):
            return False
        await self._resumed.wait()
        return self._is_current(generation)

    async def _start_with_retry(self, generation: int) -> bool:
        try:
            await self.player.start()
            return True
        except PlaybackError as exc:
            logger.warning(f"Play error: {exc}; unlocking audio and retrying once")
            self._status(f"Error: {exc}. Retrying playback")

        await self.player.unlock()
        await asyncio.sleep(self.timings.unlock_retry_delay)
        if not await self._still_wanted(generation):
            return False
        await self.player.start()
        return True

    def _finish(self) -> None:
        logger.info("Reached the end of the document")
        self._halt()
        self._set_state(PlaybackState.STOPPED)
        self._emit(ReaderEvent(ReaderEventKind.HIGHLIGHT))
        self._emit_progress()
        self._status("Finished reading")
        self._emit(ReaderEvent(ReaderEventKind.FINISHED, state=PlaybackState.STOPPED))
        self._persist()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _halt(self) -> None:
        """Invalidate in-flight work and discard any loaded or paused audio."""
        self.context.generation += 1
        self._resumed.clear()
        task, self._task = self._task, None
        if task is not None and task is not _current_task() and not task.done():
            task.cancel()
        self._discard_audio()

    def _discard_audio(self) -> None:
        loaded = self._audio_active or self._clip is not None
        self._audio_active = False
        if self._clip is not None:
            self._clip.release()
            self._clip = None
        if loaded:
            try:
                self.player.stop()
            except PlaybackError as exc:
                logger.warning(f"Could not stop audio cleanly: {exc}")

    def _drop_failed_audio(self, exc: PlaybackError) -> None:
        logger.warning(f"Audio playback error: {exc}")
        self._discard_audio()
        self._error(f"Audio error: {exc}")

    def _check_page_turn(self) -> None:
        nav = self.context.navigation
        if nav.advance_page(self.context.cursor):
            logger.debug(f"Turned to chapter {nav.chapter_index}, page {nav.page_index}")
            self._emit(
                ReaderEvent(
                    ReaderEventKind.PAGE_TURNED,
                    chapter_index=nav.chapter_index,
                    page_index=nav.page_index,
                )
            )

    def _persist(self) -> None:
        if self._save_progress is not None:
            self._save_progress()

    def _set_state(self, state: PlaybackState) -> None:
        self.context.state = state
        self._emit(ReaderEvent(ReaderEventKind.STATE_CHANGED, state=state))

    def _status(self, message: str) -> None:
        self._emit(ReaderEvent(ReaderEventKind.STATUS, message=message))

    def _status_progress(self) -> None:
        self._status(f"Reading: {round(self.progress)}% complete")

    def _error(self, message: str) -> None:
        self._emit(ReaderEvent(ReaderEventKind.ERROR, message=message))

    def _emit_progress(self) -> None:
        self._emit(ReaderEvent(ReaderEventKind.PROGRESS, progress=self.progress))

    def _emit(self, event: ReaderEvent) -> None:
        for listener in self._listeners:
            listener(event)
