from __future__ import annotations

import httpx

from novelreader.infrastructure.audio.base import AudioClip
from novelreader.infrastructure.tts.base import SynthesisError, TTSProvider, Voice
from novelreader.models import ProviderKind

GOOGLE_TTS_URL = "https://translate.google.com/translate_tts"


class GoogleTranslateProvider(TTSProvider):
    """Primary provider: the public Google Translate speech endpoint.

    Synthesis only builds the request URL; the audio is fetched when the
    player loads the clip.
    """

    name: str = "google"
    kind = ProviderKind.GOOGLE

    def __init__(
        self,
        base_url: str = GOOGLE_TTS_URL,
        language: str = "en",
        client_tag: str = "tw-ob",
    ) -> None:
        self.base_url = base_url
        self.language = language
        self.client_tag = client_tag

    def list_voices(self) -> list[Voice]:
        # The translate endpoint ignores the voice; the IDs keep user choices stable.
        return [
            Voice(id="en-US-Neural2-C", name="Elena", gender="female", description="Natural"),
            Voice(id="en-US-Neural2-A", name="Aria", gender="female", description="Warm"),
            Voice(id="en-US-Neural2-D", name="Paxton", gender="male", description="Deep"),
            Voice(id="en-US-Neural2-E", name="Liam", gender="male", description="Friendly"),
        ]

    async def synthesize(
        self,
        *,
        text: str,
        voice: str,
        speed: float = 1.0,
        pitch: float = 1.0,  # not supported by the endpoint
    ) -> AudioClip:
        """Build the speech URL for *text*."""
        if not text.strip():
            raise SynthesisError("Nothing to synthesize", provider=self.name)

        url = httpx.URL(
            self.base_url,
            params={
                "ie": "UTF-8",
                "q": text,
                "tl": self.language,
                "client": self.client_tag,
                "ttsspeed": speed,
            },
        )
        return AudioClip(url=str(url))
