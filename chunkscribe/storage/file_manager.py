"""File management for chunk audio, sessions and transcripts."""

import json
import logging
import random
import shutil
import string
import uuid
import wave
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..models.chunk import Paragraph

logger = logging.getLogger(__name__)


class FileManager:
    """Manages chunk audio files and saved session transcripts."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.chunks_dir = self.data_dir / "chunks"
        self.sessions_dir = self.data_dir / "sessions"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.chunks_dir, self.sessions_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def create_session_directory(self) -> str:
        """Create new session directory with timestamp and random suffix.

        Returns:
            Session ID (timestamp-based with random suffix)
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        session_id = f"{timestamp}_{random_suffix}"
        session_path = self.sessions_dir / session_id
        session_path.mkdir(exist_ok=True)

        logger.info(f"Created session directory: {session_path}")
        return session_id

    def get_session_path(self, session_id: str) -> Path:
        return self.sessions_dir / session_id

    def _new_chunk_path(self, suffix: str = ".wav") -> Path:
        timestamp = datetime.now().strftime("%H%M%S")
        return self.chunks_dir / f"chunk_{timestamp}_{uuid.uuid4().hex[:8]}{suffix}"

    def write_chunk_wav(self, pcm_data: bytes, sample_rate: int = 16000, channels: int = 1) -> Path:
        """Write 16-bit PCM data to a new WAV file in the chunk directory.

        Args:
            pcm_data: Raw little-endian 16-bit samples
            sample_rate: Sample rate in Hz
            channels: Number of interleaved channels

        Returns:
            Path of the written file
        """
        chunk_path = self._new_chunk_path()
        with wave.open(str(chunk_path), 'wb') as wf:
            wf.setnchannels(channels)
            wf.setsampwidth(2)
            wf.setframerate(sample_rate)
            wf.writeframes(pcm_data)

        logger.debug(f"Chunk audio written: {chunk_path} ({len(pcm_data)} bytes)")
        return chunk_path

    def stage_chunk(self, source_path: Union[str, Path]) -> Path:
        """Copy an existing audio file into the chunk directory.

        The processor deletes chunk files it is done with, so callers hand it
        a staged copy rather than their own file.
        """
        source_path = Path(source_path)
        if not source_path.is_file():
            raise FileNotFoundError(f"Audio file not found: {source_path}")
        chunk_path = self._new_chunk_path(source_path.suffix or ".wav")
        shutil.copyfile(source_path, chunk_path)
        logger.debug(f"Staged {source_path} as {chunk_path}")
        return chunk_path

    def delete_chunk_file(self, chunk_path: Union[str, Path]) -> bool:
        """Delete a chunk file, best-effort.

        Returns:
            True if the file was removed, False otherwise
        """
        try:
            Path(chunk_path).unlink()
            return True
        except OSError as e:
            logger.debug(f"Could not delete chunk file {chunk_path}: {e}")
            return False

    def list_chunk_files(self) -> List[Path]:
        return sorted(p for p in self.chunks_dir.iterdir() if p.is_file())

    def save_transcript(self, session_id: str, transcript: str,
                        paragraphs: Optional[List[Paragraph]] = None) -> Path:
        """Save the final transcript and, optionally, the paragraph records.

        Args:
            session_id: Session identifier
            transcript: Assembled transcript text
            paragraphs: Paragraphs to save as ``paragraphs.json``

        Returns:
            Path to the saved transcript file
        """
        session_path = self.get_session_path(session_id)
        session_path.mkdir(parents=True, exist_ok=True)

        transcript_file = session_path / "transcript.txt"
        try:
            transcript_file.write_text(transcript, encoding="utf-8")
            if paragraphs is not None:
                paragraphs_file = session_path / "paragraphs.json"
                with open(paragraphs_file, 'w', encoding="utf-8") as f:
                    json.dump([p.to_dict() for p in paragraphs], f, indent=2, ensure_ascii=False)
        except Exception as e:
            logger.error(f"Error saving transcript: {e}")
            raise

        logger.info(f"Transcript saved: {transcript_file}")
        return transcript_file
