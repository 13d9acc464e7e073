"""Google Speech-to-Text transcription backend."""

import asyncio
import time
import logging
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Optional, Dict, Any

from .base import AbstractTranscriptionBackend
from ..errors import TranscriptionError
from ..models.transcription import TranscriptionResult

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for chunk files."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 request_timeout: float = 30.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the chunk WAV files
            language: Language code (e.g., 'en-US', 'ru-RU')
            use_enhanced: Whether to use enhanced model
            enable_automatic_punctuation: Enable automatic punctuation
            request_timeout: Per-request deadline in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.request_timeout = request_timeout
        self.client = None
        self.project_id = None
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model="latest_long",
        )

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        return True

    async def transcribe_file(self, chunk_id: str, audio_path: Path) -> TranscriptionResult:
        """Transcribe a chunk file without blocking the worker's event loop."""
        if self.client is None:
            raise TranscriptionError("Google Speech backend is not initialized", chunk_id)
        audio_content = Path(audio_path).read_bytes()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(self._recognize, chunk_id, audio_content))

    def _recognize(self, chunk_id: str, audio_content: bytes) -> TranscriptionResult:
        start_time = time.time()
        logger.debug(f"Chunk ID: {chunk_id}; Audio size: {len(audio_content)} bytes; Language: {self.language}")

        audio = speech.RecognitionAudio(content=audio_content)
        try:
            response = self.client.recognize(config=self.config, audio=audio, timeout=self.request_timeout)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded for chunk %s", chunk_id)
            raise TranscriptionError(f"Google Speech recognize timeout (chunk={chunk_id}): {e}", chunk_id) from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for chunk %s", chunk_id)
            raise TranscriptionError(f"Google Speech service unavailable (chunk={chunk_id}): {e}", chunk_id) from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for chunk %s: %s", chunk_id, e)
            raise TranscriptionError(f"Google Speech API error (chunk={chunk_id}): {e}", chunk_id) from e
        processing_time = time.time() - start_time

        if not response.results:
            logger.debug(f"No speech detected in chunk {chunk_id}")
            return TranscriptionResult(
                text="",
                confidence=0.0,
                processing_time=processing_time,
                timestamp=datetime.now(),
                service=self.service_name,
                language=self.language,
                chunk_id=chunk_id,
            )

        # Long chunks come back as several consecutive results
        transcripts = []
        confidences = []
        for recognition_result in response.results:
            if not recognition_result.alternatives:
                continue
            alternative = recognition_result.alternatives[0]
            transcripts.append(alternative.transcript.strip())
            confidences.append(alternative.confidence)

        text = " ".join(t for t in transcripts if t)
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        logger.debug(f"Transcription success for {chunk_id}: '{text[:50]}' "
                     f"(confidence: {confidence:.2f}, processing_time: {processing_time:.3f}s)")
        return TranscriptionResult(
            text=text,
            confidence=confidence,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            chunk_id=chunk_id,
        )

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None

    def get_stats(self) -> Dict[str, Any]:
        """Get Google-specific statistics."""
        stats = super().get_stats()
        stats.update({
            "use_enhanced": self.use_enhanced,
            "enable_punctuation": self.enable_automatic_punctuation,
        })
        return stats
