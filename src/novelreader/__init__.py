"""
Novelreader - document reader with synchronized text-to-speech.

This top-level package exposes the core models shared by the
segmentation, navigation and playback layers.
"""

from .models import (
    Chapter,
    Document,
    Page,
    PlaybackState,
    ProgressRecord,
    ProviderKind,
    SpeechSettings,
    VoiceSelection,
)

__all__ = [
    "Chapter",
    "Document",
    "Page",
    "PlaybackState",
    "ProgressRecord",
    "ProviderKind",
    "SpeechSettings",
    "VoiceSelection",
]
