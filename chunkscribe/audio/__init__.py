"""Audio frame publishing and pause-based chunking."""

from .audio_pub import AudioPublisher
from .segmenter import PauseChunker, frame_level

__all__ = [
    'AudioPublisher',
    'PauseChunker',
    'frame_level',
]
