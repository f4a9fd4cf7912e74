"""TTS provider implementations (Google Translate, Kokoro)."""

# Re-export for easier access, e.g. `from novelreader.infrastructure.tts import KokoroProvider`
from .base import SynthesisError, TTSProvider, Voice
from .google_provider import GoogleTranslateProvider
from .kokoro_provider import KokoroProvider
from .speech_service import SpeechService, detect_touch_primary_platform, provider_kind_for_voice

__all__ = [
    "GoogleTranslateProvider",
    "KokoroProvider",
    "SpeechService",
    "SynthesisError",
    "TTSProvider",
    "Voice",
    "detect_touch_primary_platform",
    "provider_kind_for_voice",
]
