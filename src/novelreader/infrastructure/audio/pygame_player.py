from __future__ import annotations

import asyncio
import io
import logging
import os

import httpx

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame  # noqa: E402

from novelreader.infrastructure.audio.base import AudioClip, AudioPlayer, PlaybackError  # noqa: E402

logger = logging.getLogger(__name__)

_NAMEHINTS = {"audio/mpeg": "mp3", "audio/wav": "wav", "audio/ogg": "ogg"}


class PygameAudioPlayer(AudioPlayer):
    """Plays clips through ``pygame.mixer.music``, fetching URL clips over HTTP."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        poll_interval: float = 0.05,
        timeout: float = 30.0,
    ) -> None:
        self._http = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self.poll_interval = poll_interval
        self._source: tuple[bytes, str] | None = None
        self._loaded = False
        self._playing = False
        self._paused = False

    def _ensure_mixer(self) -> None:
        if not pygame.mixer.get_init():
            pygame.mixer.init()

    async def load(self, clip: AudioClip) -> None:
        data = clip.data
        if data is None:
            try:
                response = await self._http.get(clip.url, headers={"User-Agent": "Mozilla/5.0"})
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise PlaybackError(f"Failed to load audio: {exc}") from exc
            data = response.content

        self._source = (data, _NAMEHINTS.get(clip.media_type, "mp3"))
        try:
            self._ensure_mixer()
            self._load_source()
        except pygame.error as exc:
            raise PlaybackError(f"Failed to decode audio: {exc}") from exc
        self._loaded = True
        self._paused = False
        logger.debug(f"Loaded {len(data)} bytes of audio")

    def _load_source(self) -> None:
        data, namehint = self._source
        pygame.mixer.music.load(io.BytesIO(data), namehint)

    async def start(self) -> None:
        if not self._loaded:
            raise PlaybackError("No audio loaded")
        try:
            pygame.mixer.music.play()
        except pygame.error as exc:
            raise PlaybackError(f"Play error: {exc}") from exc
        self._playing = True

    async def wait_finished(self) -> None:
        # get_busy() is False while paused, so the pause flag keeps us waiting.
        try:
            while self._playing and (self._paused or pygame.mixer.music.get_busy()):
                await asyncio.sleep(self.poll_interval)
        except pygame.error as exc:
            raise PlaybackError(f"Playback failed: {exc}") from exc
        finally:
            self._playing = False

    def pause(self) -> None:
        if self._playing and not self._paused:
            try:
                pygame.mixer.music.pause()
            except pygame.error as exc:
                raise PlaybackError(f"Pause failed: {exc}") from exc
            self._paused = True

    def resume(self) -> None:
        if self._paused:
            try:
                pygame.mixer.music.unpause()
            except pygame.error as exc:
                raise PlaybackError(f"Resume failed: {exc}") from exc
            self._paused = False

    def stop(self) -> None:
        try:
            if pygame.mixer.get_init():
                pygame.mixer.music.stop()
                pygame.mixer.music.unload()
        except pygame.error as exc:
            raise PlaybackError(f"Stop failed: {exc}") from exc
        finally:
            self._source = None
            self._loaded = False
            self._playing = False
            self._paused = False

    async def unlock(self) -> None:
        """Restart the mixer, which recovers a lost audio device."""
        logger.info("Re-initialising audio output")
        try:
            pygame.mixer.quit()
            pygame.mixer.init()
            # Quitting the mixer drops the loaded music.
            if self._source is not None:
                self._load_source()
        except pygame.error as exc:
            raise PlaybackError(f"Audio unlock failed: {exc}") from exc

    async def aclose(self) -> None:
        try:
            self.stop()
        finally:
            await self._http.aclose()
