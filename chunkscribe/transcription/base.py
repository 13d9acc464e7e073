"""Abstract base class for transcription backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict
import logging

from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    service_name = "unknown"

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    async def transcribe_file(self, chunk_id: str, audio_path: Path) -> TranscriptionResult:
        """Transcribe one audio chunk file.

        Args:
            chunk_id: Identifier of the chunk, used for logging and results
            audio_path: Path to the chunk's audio file

        Returns:
            TranscriptionResult with the transcribed text

        Raises:
            Exception: Any failure; callers treat all errors alike
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass

    def get_stats(self) -> Dict[str, Any]:
        return {"service": self.service_name, "language": self.language}
