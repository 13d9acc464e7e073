"""Event models for pub/sub audio processing."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AudioEvent:
    """Captured PCM16 audio frame with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when the frame was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: Optional[int] = None
    final: bool = False  # True for the last frame of a recording

    def __post_init__(self):
        """Calculate frame duration if not provided."""
        if self.chunk_duration_ms is None:
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.audio_data) / bytes_per_second
            self.chunk_duration_ms = int(duration_seconds * 1000)

    @property
    def duration_seconds(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * 2
        return len(self.audio_data) / bytes_per_second
