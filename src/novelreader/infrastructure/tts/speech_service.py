"""Provider selection and single cross-provider fallback."""

from __future__ import annotations

import logging
import sys

from novelreader.infrastructure.audio.base import AudioClip
from novelreader.infrastructure.tts.base import TTSProvider
from novelreader.models import ProviderKind, SpeechSettings

logger = logging.getLogger(__name__)


def detect_touch_primary_platform() -> bool:
    """True on mobile interpreters, where the primary provider is unreliable."""
    return sys.platform in ("ios", "android") or hasattr(sys, "getandroidapilevel")


class SpeechService:
    """Turns a phrase into audio, trying the preferred provider then the other one.

    Failures never escape: when both providers fail the caller gets ``None``.
    """

    def __init__(
        self,
        primary: TTSProvider,
        secondary: TTSProvider,
        prefer_secondary: bool | None = None,
    ) -> None:
        self.primary = primary
        self.secondary = secondary
        self.prefer_secondary = (
            detect_touch_primary_platform() if prefer_secondary is None else prefer_secondary
        )

    @property
    def providers(self) -> list[TTSProvider]:
        return [self.primary, self.secondary]

    def provider_order(self, settings: SpeechSettings) -> list[TTSProvider]:
        if self.prefer_secondary or settings.voice.provider_kind == self.secondary.kind:
            return [self.secondary, self.primary]
        return [self.primary, self.secondary]

    async def synthesize(self, text: str, settings: SpeechSettings) -> AudioClip | None:
        first, fallback = self.provider_order(settings)
        try:
            return await self._synthesize_with(first, text, settings)
        except Exception as exc:
            logger.warning(f"Speech generation with {first.name} failed: {exc}")

        try:
            return await self._synthesize_with(fallback, text, settings)
        except Exception as exc:
            logger.error(f"Fallback speech generation with {fallback.name} also failed: {exc}")
            return None

    @staticmethod
    async def _synthesize_with(
        provider: TTSProvider, text: str, settings: SpeechSettings
    ) -> AudioClip:
        voice = settings.voice.voice_id
        if not provider.has_voice(voice):
            voice = provider.default_voice
        return await provider.synthesize(
            text=text, voice=voice, speed=settings.speed, pitch=settings.pitch
        )


def provider_kind_for_voice(service: SpeechService, voice_id: str) -> ProviderKind | None:
    """The kind of the provider offering *voice_id*, if any."""
    for provider in service.providers:
        if provider.has_voice(voice_id):
            return provider.kind
    return None
