"""Shared fakes for the playback and session tests."""

import asyncio

import pytest

from novelreader.infrastructure.audio.base import AudioClip, AudioPlayer, PlaybackError
from novelreader.models import SpeechSettings, VoiceSelection
from novelreader.services.chapter_segmenter import ChapterSegmenter
from novelreader.services.navigation import NavigationState
from novelreader.services.paginator import paginate_all
from novelreader.services.playback import PlaybackScheduler, ReadingContext, SchedulerTimings
from novelreader.services.word_index import WordIndex
from novelreader.settings import Settings

NO_DELAYS = SchedulerTimings(
    no_audio_retry_delay=0,
    synthesis_error_delay=0,
    playback_error_delay=0,
    unlock_retry_delay=0,
    phrase_pacing_delay=0,
)


class FakePlayer(AudioPlayer):
    """Records every call; clips finish at once unless ``hold`` is set."""

    def __init__(self):
        self.calls = []
        self.hold = False
        self.finished = asyncio.Event()
        self.failing_starts = 0

    async def load(self, clip):
        self.calls.append("load")

    async def start(self):
        self.calls.append("start")
        if self.failing_starts:
            self.failing_starts -= 1
            raise PlaybackError("output blocked")

    async def wait_finished(self):
        if self.hold:
            await self.finished.wait()
            self.finished.clear()

    def pause(self):
        self.calls.append("pause")

    def resume(self):
        self.calls.append("resume")

    def stop(self):
        self.calls.append("stop")

    async def unlock(self):
        self.calls.append("unlock")


class FakeSpeech:
    """Stands in for SpeechService. Set ``gate`` to hold requests until it is set."""

    def __init__(self):
        self.requests = []
        self.gate = None
        self.no_audio = False
        self.error = None

    async def synthesize(self, text, settings):
        self.requests.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.no_audio:
            return None
        return AudioClip(data=b"ID3 fake audio")


async def _run_until(condition, attempts=200):
    """Yield to the event loop until *condition* holds."""
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def run_until():
    return _run_until


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def speech_settings():
    return SpeechSettings(voice=VoiceSelection(voice_id="en-US-Neural2-C"))


@pytest.fixture
def settings():
    """Settings with no pacing delays and no .env lookup."""
    return Settings(
        _env_file=None,
        words_per_page=10,
        no_audio_retry_delay=0,
        synthesis_error_delay=0,
        playback_error_delay=0,
        unlock_retry_delay=0,
        phrase_pacing_delay=0,
    )


@pytest.fixture
def make_scheduler(speech, player, speech_settings):
    """Build a scheduler over *text*; returns it with the list of emitted events."""

    def _make(text, words_per_page=400, **kwargs):
        chapters = ChapterSegmenter().segment(text)
        navigation = NavigationState(chapters, paginate_all(chapters, words_per_page))
        context = ReadingContext(
            word_index=WordIndex(text), navigation=navigation, speech=speech_settings
        )
        events = []
        scheduler = PlaybackScheduler(
            context, speech, player, timings=NO_DELAYS, on_event=events.append, **kwargs
        )
        return scheduler, events

    return _make
