from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from openai import APIError, APIStatusError, AsyncOpenAI

# Internal - base class and voice model
from novelreader.infrastructure.audio.base import AudioClip
from novelreader.infrastructure.tts.base import SynthesisError, TTSProvider, Voice
from novelreader.models import ProviderKind

load_dotenv()
logger = logging.getLogger(__name__)

KOKORO_BASE_URL = "https://voice-generator.pages.dev/api/v1"


class KokoroProvider(TTSProvider):
    """Secondary provider: Kokoro behind an OpenAI-compatible `/audio/speech` endpoint.

    Each phrase is a JSON POST of ``{model, input, voice, speed}`` answered with
    raw audio bytes.
    """

    name: str = "kokoro"
    kind = ProviderKind.KOKORO

    def __init__(
        self,
        base_url: str = KOKORO_BASE_URL,
        model: str = "kokoro-v0_19",
        api_key: str | None = None,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        # The public endpoint needs no key, but the client insists on one.
        key = api_key or os.getenv("KOKORO_API_KEY") or "kokoro"
        self.client = client or AsyncOpenAI(
            api_key=key, base_url=base_url, timeout=timeout, max_retries=0
        )

    def list_voices(self) -> list[Voice]:
        return [
            Voice(id="af_sky", name="Sky", gender="female"),
            Voice(id="af_bella", name="Bella", gender="female"),
            Voice(id="am_alloy", name="Alloy", gender="male"),
            Voice(id="am_michael", name="Michael", gender="male"),
        ]

    async def synthesize(
        self,
        *,
        text: str,
        voice: str,  # Matched to one of the IDs above
        speed: float = 1.0,
        pitch: float = 1.0,  # Pitch is not supported by the endpoint and is ignored
    ) -> AudioClip:
        """Synthesize audio for *text* and return it in memory."""
        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                input=text,
                voice=voice,  # type: ignore[arg-type]
                speed=speed,
            )
        except APIStatusError as exc:
            raise SynthesisError(
                f"Kokoro API error: {exc.status_code}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc
        except APIError as exc:
            raise SynthesisError(f"Kokoro API unreachable: {exc}", provider=self.name) from exc

        audio = response.content
        if not audio:
            raise SynthesisError("Kokoro API returned no audio", provider=self.name)
        logger.debug(f"Kokoro returned {len(audio)} bytes for {len(text)} chars")
        return AudioClip(data=audio)
