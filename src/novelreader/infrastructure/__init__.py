"""I/O boundary adapters (speech providers, audio output)."""

from .audio import AudioClip, AudioPlayer, PlaybackError
from .tts import (
    GoogleTranslateProvider,
    KokoroProvider,
    SpeechService,
    SynthesisError,
    TTSProvider,
    Voice,
)

__all__ = [
    "AudioClip",
    "AudioPlayer",
    "GoogleTranslateProvider",
    "KokoroProvider",
    "PlaybackError",
    "SpeechService",
    "SynthesisError",
    "TTSProvider",
    "Voice",
]
