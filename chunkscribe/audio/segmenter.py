"""Pause-based segmentation of captured audio into transcription chunks."""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from ..config import RealtimeSettings
from ..models.events import AudioEvent
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)

FLOOR_DB = -60.0


def frame_level(pcm_data: bytes) -> float:
    """Normalized loudness of a PCM16 frame in [0, 1].

    0 is at or below -60 dBFS, 1 is full scale.
    """
    usable = len(pcm_data) - (len(pcm_data) % 2)
    if usable <= 0:
        return 0.0
    samples = np.frombuffer(pcm_data[:usable], dtype=np.int16).astype(np.float64)
    rms = np.sqrt(np.mean(samples ** 2))
    if rms <= 0:
        return 0.0
    db = 20.0 * np.log10(rms / 32768.0)
    return float(np.clip((db - FLOOR_DB) / -FLOOR_DB, 0.0, 1.0))


class PauseChunker:
    """Cuts a stream of audio frames into chunks at speech pauses.

    A chunk is emitted once it is at least ``min_chunk_duration`` long and the
    speaker has been silent for ``pause_threshold`` seconds, or as soon as it
    reaches ``max_chunk_duration``. Chunks that contain no speech at all are
    dropped.
    """

    def __init__(self,
                 file_manager: FileManager,
                 on_chunk: Callable[[Path, float, str], object],
                 settings: Optional[RealtimeSettings] = None,
                 preview_provider: Optional[Callable[[], str]] = None):
        """Initialize the chunker.

        Args:
            file_manager: Writes emitted chunks as WAV files
            on_chunk: Receives ``(audio_path, duration, preview_text)``
            settings: Chunking thresholds
            preview_provider: Returns the local preview text for a chunk
        """
        self.file_manager = file_manager
        self.on_chunk = on_chunk
        self.settings = settings or RealtimeSettings()
        self.preview_provider = preview_provider

        self.lock = threading.Lock()
        self.buffer = bytearray()
        self.buffered_seconds = 0.0
        self.silence_seconds = 0.0
        self.speech_seconds = 0.0
        self.sample_rate = self.settings.sample_rate
        self.channels = self.settings.channels
        self.chunks_emitted = 0
        self.chunks_dropped = 0

        logger.info(f"PauseChunker initialized: silence<{self.settings.silence_threshold:.2f}, "
                    f"pause={self.settings.pause_threshold}s, "
                    f"chunk={self.settings.min_chunk_duration}-{self.settings.max_chunk_duration}s")

    def on_audio_chunk(self, event: AudioEvent) -> Optional[Path]:
        """Add a captured frame; returns the chunk path if one was emitted."""
        emitted = None
        if event.audio_data:
            duration = event.duration_seconds
            level = frame_level(event.audio_data)
            with self.lock:
                self.sample_rate = event.sample_rate
                self.channels = event.channels
                self.buffer.extend(event.audio_data)
                self.buffered_seconds += duration
                if level < self.settings.silence_threshold:
                    self.silence_seconds += duration
                else:
                    self.silence_seconds = 0.0
                    self.speech_seconds += duration
                should_cut = self._should_cut_locked()
            if should_cut:
                emitted = self.flush()

        if event.final:
            emitted = self.flush() or emitted
        return emitted

    def _should_cut_locked(self) -> bool:
        if self.buffered_seconds >= self.settings.max_chunk_duration:
            return True
        return (self.buffered_seconds >= self.settings.min_chunk_duration
                and self.silence_seconds >= self.settings.pause_threshold)

    def flush(self) -> Optional[Path]:
        """Emit whatever speech is buffered as a chunk.

        Returns:
            Path of the emitted chunk, or None if nothing was emitted
        """
        with self.lock:
            pcm = bytes(self.buffer)
            duration = self.buffered_seconds
            speech = self.speech_seconds
            sample_rate = self.sample_rate
            channels = self.channels
            self._clear_locked()

        if not pcm:
            return None
        if speech <= 0:
            self.chunks_dropped += 1
            logger.debug(f"Dropping silent chunk ({duration:.1f}s)")
            return None

        chunk_path = self.file_manager.write_chunk_wav(pcm, sample_rate, channels)
        preview = self.preview_provider() if self.preview_provider else ""
        try:
            self.on_chunk(chunk_path, duration, preview or "")
        except Exception as e:
            # The receiver never took ownership of the file
            logger.error(f"Chunk {chunk_path.name} was not accepted: {e}")
            self.file_manager.delete_chunk_file(chunk_path)
            raise
        self.chunks_emitted += 1
        logger.info(f"Chunk emitted: {chunk_path.name} ({duration:.1f}s, speech {speech:.1f}s)")
        return chunk_path

    def reset(self) -> None:
        """Drop any buffered audio."""
        with self.lock:
            self._clear_locked()

    def _clear_locked(self) -> None:
        self.buffer.clear()
        self.buffered_seconds = 0.0
        self.silence_seconds = 0.0
        self.speech_seconds = 0.0
