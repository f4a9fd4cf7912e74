"""Tests for the speech providers and cross-provider fallback."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from novelreader.infrastructure.tts import (
    GoogleTranslateProvider,
    KokoroProvider,
    SpeechService,
    SynthesisError,
    provider_kind_for_voice,
)
from novelreader.models import ProviderKind, SpeechSettings, VoiceSelection


def settings_for(voice_id="en-US-Neural2-C", kind=ProviderKind.GOOGLE, speed=1.0):
    return SpeechSettings(voice=VoiceSelection(voice_id=voice_id, provider_kind=kind), speed=speed)


@pytest.fixture
def kokoro_client():
    client = MagicMock()
    client.audio.speech.create = AsyncMock(return_value=MagicMock(content=b"ID3 kokoro audio"))
    return client


@pytest.fixture
def kokoro(kokoro_client):
    return KokoroProvider(client=kokoro_client)


class TestGoogleTranslateProvider:
    """The URL-only primary provider."""

    @pytest.mark.asyncio
    async def test_synthesize_builds_speech_url(self):
        provider = GoogleTranslateProvider(language="en", client_tag="tw-ob")

        clip = await provider.synthesize(text="Hello there, friend.", voice="en-US-Neural2-C", speed=1.5)

        url = httpx.URL(clip.url)
        assert url.host == "translate.google.com"
        assert url.path == "/translate_tts"
        assert url.params["q"] == "Hello there, friend."
        assert url.params["tl"] == "en"
        assert url.params["client"] == "tw-ob"
        assert url.params["ie"] == "UTF-8"
        assert url.params["ttsspeed"] == "1.5"
        assert clip.data is None

    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self):
        with pytest.raises(SynthesisError):
            await GoogleTranslateProvider().synthesize(text="  ", voice="en-US-Neural2-C")

    def test_voices(self):
        provider = GoogleTranslateProvider()

        assert provider.default_voice == "en-US-Neural2-C"
        assert provider.has_voice("en-US-Neural2-D")
        assert not provider.has_voice("af_sky")


class TestKokoroProvider:
    """The OpenAI-compatible secondary provider."""

    @pytest.mark.asyncio
    async def test_synthesize_returns_audio_bytes(self, kokoro, kokoro_client):
        clip = await kokoro.synthesize(text="Hi.", voice="af_bella", speed=1.2)

        assert clip.data == b"ID3 kokoro audio"
        assert clip.url is None
        kokoro_client.audio.speech.create.assert_awaited_once_with(
            model="kokoro-v0_19", input="Hi.", voice="af_bella", speed=1.2
        )

    @pytest.mark.asyncio
    async def test_status_error_keeps_status_code(self, kokoro, kokoro_client):
        request = httpx.Request("POST", "https://voice-generator.pages.dev/api/v1/audio/speech")
        kokoro_client.audio.speech.create.side_effect = openai.APIStatusError(
            "unavailable", response=httpx.Response(503, request=request), body=None
        )

        with pytest.raises(SynthesisError) as exc_info:
            await kokoro.synthesize(text="Hi.", voice="af_sky")

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider == "kokoro"

    @pytest.mark.asyncio
    async def test_connection_error(self, kokoro, kokoro_client):
        request = httpx.Request("POST", "https://voice-generator.pages.dev/api/v1/audio/speech")
        kokoro_client.audio.speech.create.side_effect = openai.APIConnectionError(request=request)

        with pytest.raises(SynthesisError) as exc_info:
            await kokoro.synthesize(text="Hi.", voice="af_sky")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_empty_audio_is_an_error(self, kokoro, kokoro_client):
        kokoro_client.audio.speech.create.return_value = MagicMock(content=b"")

        with pytest.raises(SynthesisError):
            await kokoro.synthesize(text="Hi.", voice="af_sky")


class TestSpeechService:
    """Provider order and fallback."""

    @pytest.fixture
    def google(self):
        provider = GoogleTranslateProvider()
        provider.synthesize = AsyncMock(wraps=provider.synthesize)
        return provider

    @pytest.mark.asyncio
    async def test_primary_first(self, google, kokoro, kokoro_client):
        service = SpeechService(google, kokoro, prefer_secondary=False)

        clip = await service.synthesize("Hello.", settings_for())

        assert clip.url is not None
        kokoro_client.audio.speech.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_once_with_default_voice(self, google, kokoro, kokoro_client):
        google.synthesize.side_effect = SynthesisError("down", provider="google")
        service = SpeechService(google, kokoro, prefer_secondary=False)

        clip = await service.synthesize("Hello.", settings_for(speed=0.8))

        assert clip.data == b"ID3 kokoro audio"
        kwargs = kokoro_client.audio.speech.create.await_args.kwargs
        assert kwargs["voice"] == "af_sky"
        assert kwargs["speed"] == 0.8

    @pytest.mark.asyncio
    async def test_both_failing_gives_no_audio(self, google, kokoro, kokoro_client):
        google.synthesize.side_effect = SynthesisError("down", provider="google")
        kokoro_client.audio.speech.create.side_effect = RuntimeError("also down")
        service = SpeechService(google, kokoro, prefer_secondary=False)

        assert await service.synthesize("Hello.", settings_for()) is None
        assert google.synthesize.await_count == 1
        assert kokoro_client.audio.speech.create.await_count == 1

    @pytest.mark.asyncio
    async def test_secondary_voice_goes_to_secondary_first(self, google, kokoro):
        service = SpeechService(google, kokoro, prefer_secondary=False)

        clip = await service.synthesize("Hello.", settings_for("am_michael", ProviderKind.KOKORO))

        assert clip.data is not None
        google.synthesize.assert_not_awaited()

    def test_touch_platform_prefers_secondary(self, google, kokoro):
        with patch(
            "novelreader.infrastructure.tts.speech_service.detect_touch_primary_platform",
            return_value=True,
        ):
            service = SpeechService(google, kokoro)

        assert service.provider_order(settings_for()) == [kokoro, google]

    def test_explicit_preference_overrides_detection(self, google, kokoro):
        with patch(
            "novelreader.infrastructure.tts.speech_service.detect_touch_primary_platform",
            return_value=True,
        ):
            service = SpeechService(google, kokoro, prefer_secondary=False)

        assert service.provider_order(settings_for()) == [google, kokoro]

    def test_provider_kind_for_voice(self, google, kokoro):
        service = SpeechService(google, kokoro, prefer_secondary=False)

        assert provider_kind_for_voice(service, "af_bella") is ProviderKind.KOKORO
        assert provider_kind_for_voice(service, "en-US-Neural2-A") is ProviderKind.GOOGLE
        assert provider_kind_for_voice(service, "nobody") is None
