import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from novelreader.models import ProviderKind, SpeechSettings, VoiceSelection


class Settings(BaseSettings):
    """Application settings loaded from environment variables or `.env` file."""

    log_level: str = Field(default="INFO", description="Logging level")
    database_url: str = Field(
        default="sqlite:///novelreader.db",
        description="SQLAlchemy URL of the reading progress database",
        alias="DATABASE_URL",
    )

    # Segmentation and reading
    words_per_page: int = Field(default=400, ge=1, description="Words shown per page")
    skip_words: int = Field(default=50, ge=1, description="Words jumped by a skip")
    max_phrase_words: int = Field(default=20, ge=1, description="Phrase length before forced cut")

    # Voice preferences
    tts_provider: ProviderKind = Field(default=ProviderKind.GOOGLE, description="Preferred provider")
    tts_voice: str = Field(default="en-US-Neural2-C", description="Preferred voice ID")
    tts_speed: float = Field(default=1.0, ge=0.5, le=2.0)
    tts_pitch: float = Field(default=1.0, ge=0.5, le=2.0)
    prefer_secondary_provider: bool | None = Field(
        default=None,
        description="Force the Kokoro provider first; None detects touch-primary platforms",
    )

    # Google Translate TTS (primary)
    google_tts_url: str = "https://translate.google.com/translate_tts"
    google_tts_language: str = "en"
    google_tts_client: str = "tw-ob"

    # Kokoro, OpenAI-compatible speech endpoint (secondary)
    kokoro_base_url: str = "https://voice-generator.pages.dev/api/v1"
    kokoro_model: str = "kokoro-v0_19"
    kokoro_api_key: str | None = None

    # Timing, in seconds
    no_audio_retry_delay: float = Field(default=0.5, ge=0)
    synthesis_error_delay: float = Field(default=1.0, ge=0)
    playback_error_delay: float = Field(default=0.5, ge=0)
    unlock_retry_delay: float = Field(default=0.2, ge=0)
    phrase_pacing_delay: float = Field(default=0.1, ge=0)
    http_timeout: float = Field(default=30.0, gt=0)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    def speech_settings(self) -> SpeechSettings:
        """Initial voice/speed/pitch for a new reading session."""
        return SpeechSettings(
            voice=VoiceSelection(voice_id=self.tts_voice, provider_kind=self.tts_provider),
            speed=self.tts_speed,
            pitch=self.tts_pitch,
        )


@lru_cache
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached instance of Settings."""
    s = Settings()
    logging.basicConfig(
        level=s.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("Starting novelreader")
    logger.info("=" * 60)
    logger.info(f"Database URL: {s.database_url}")
    logger.info(f"TTS Provider: {s.tts_provider.value} (voice {s.tts_voice})")
    logger.info(f"Words per page: {s.words_per_page}")
    logger.info("=" * 60)

    return s
