from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from novelreader.infrastructure.audio.base import AudioClip
from novelreader.models import ProviderKind


class SynthesisError(Exception):
    """A provider could not turn text into audio."""

    def __init__(self, message: str, *, provider: str, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


@dataclass
class Voice:
    """Represents a voice option for a TTS provider."""

    id: str
    name: str
    gender: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)


class TTSProvider(ABC):
    """Abstract base class for TTS providers."""

    kind: ProviderKind

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the (unique) short-name for this provider (e.g. 'google')."""

    @abstractmethod
    def list_voices(self) -> list[Voice]:
        """Return all available voices for this provider."""

    @abstractmethod
    async def synthesize(
        self,
        *,  # force keyword-only args
        text: str,
        voice: str,  # voice ID
        speed: float = 1.0,
        pitch: float = 1.0,
    ) -> AudioClip:
        """Return playable audio for *text*, raising `SynthesisError` on failure."""

    @property
    def default_voice(self) -> str:
        return self.list_voices()[0].id

    def has_voice(self, voice_id: str) -> bool:
        return any(v.id == voice_id for v in self.list_voices())
