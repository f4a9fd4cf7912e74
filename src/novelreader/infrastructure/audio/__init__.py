"""Audio output. The pygame backend lives in `pygame_player` and is imported on demand."""

from .base import AudioClip, AudioPlayer, PlaybackError

__all__ = ["AudioClip", "AudioPlayer", "PlaybackError"]
