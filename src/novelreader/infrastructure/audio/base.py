from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class PlaybackError(Exception):
    """Audio could not be loaded, started, or failed while playing."""


@dataclass
class AudioClip:
    """Playable audio for one phrase: a URL to fetch or the audio bytes themselves."""

    url: str | None = None
    data: bytes | None = None
    media_type: str = "audio/mpeg"

    def __post_init__(self) -> None:
        if (self.url is None) == (self.data is None):
            raise ValueError("AudioClip needs exactly one of url or data")

    def release(self) -> None:
        """Drop the temporary audio buffer once playback is over."""
        self.url = None
        self.data = None


class AudioPlayer(ABC):
    """Plays one clip at a time.

    ``load`` resolves once the clip is ready, ``start`` begins playback and
    ``wait_finished`` resolves on natural completion. Every method may raise
    ``PlaybackError``. After ``stop`` any pending ``wait_finished`` returns.
    """

    @abstractmethod
    async def load(self, clip: AudioClip) -> None:
        """Prepare *clip* for playback."""

    @abstractmethod
    async def start(self) -> None:
        """Begin playing the loaded clip."""

    @abstractmethod
    async def wait_finished(self) -> None:
        """Wait until the clip has played to the end (pauses included)."""

    @abstractmethod
    def pause(self) -> None:
        """Pause in place; ``resume`` continues from the same position."""

    @abstractmethod
    def resume(self) -> None:
        """Continue a paused clip."""

    @abstractmethod
    def stop(self) -> None:
        """Discard the current clip."""

    async def unlock(self) -> None:
        """Re-acquire the audio output after a failed start. No-op by default."""
