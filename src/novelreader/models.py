from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Document structure
# =============================================================================


class Document(BaseModel):
    """A loaded body of text. Replaced wholesale when another file is imported."""

    model_config = ConfigDict(frozen=True)

    raw_text: str = Field(..., description="Full extracted text")
    source_name: str = Field(..., description="File name or 'Pasted Text'; keys saved progress")


class Chapter(BaseModel):
    """Contiguous slice of the document starting at a detected heading."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Heading text, or a placeholder for the whole-text chapter")
    text: str = Field(..., description="Chapter body, heading included")
    start_offset: int = Field(0, description="Character offset of the heading match in the raw text")

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class Page(BaseModel):
    """Word-count bounded slice of a single chapter."""

    model_config = ConfigDict(frozen=True)

    chapter_index: int
    page_index: int
    text: str = Field(..., description="Page words re-joined with single spaces")
    word_count: int


# =============================================================================
# Playback
# =============================================================================


class PlaybackState(str, Enum):
    """Reading session states."""

    IDLE = "IDLE"
    READING = "READING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"


class ProviderKind(str, Enum):
    """Speech providers. GOOGLE is the primary, KOKORO the secondary."""

    GOOGLE = "google"
    KOKORO = "kokoro"


class VoiceSelection(BaseModel):
    """Voice chosen by the user and the provider that owns it."""

    model_config = ConfigDict(frozen=True)

    voice_id: str = Field(..., description="Provider-specific voice ID")
    provider_kind: ProviderKind = Field(ProviderKind.GOOGLE, description="Provider owning the voice")


class SpeechSettings(BaseModel):
    """Voice and prosody applied to every synthesized phrase."""

    model_config = ConfigDict(frozen=True)

    voice: VoiceSelection
    speed: float = Field(1.0, ge=0.5, le=2.0)
    pitch: float = Field(1.0, ge=0.5, le=2.0)


# =============================================================================
# Progress
# =============================================================================


class ProgressRecord(BaseModel):
    """Saved reading position for one document."""

    source_name: str
    chapter_index: int = Field(0, ge=0)
    page_index: int = Field(0, ge=0)
    word_cursor: int = Field(0, ge=0, description="Words already read")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
