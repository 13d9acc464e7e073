"""Whisper-compatible HTTP transcription backend."""

import time
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

import aiohttp

from .base import AbstractTranscriptionBackend
from ..errors import TranscriptionError
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class WhisperHTTPBackend(AbstractTranscriptionBackend):
    """Uploads chunk files to an OpenAI-compatible ``/audio/transcriptions`` endpoint."""

    service_name = "Whisper HTTP"

    def __init__(self,
                 base_url: str,
                 api_key: Optional[str] = None,
                 model: str = "whisper-1",
                 language: str = "en",
                 request_timeout: float = 60.0):
        """Initialize Whisper HTTP backend.

        Args:
            base_url: Server root, e.g. ``https://api.openai.com/v1``
            api_key: Bearer token, if the server needs one
            model: Model name sent with each request
            language: ISO-639-1 language hint
            request_timeout: Total request timeout in seconds
        """
        super().__init__(language)
        if not base_url:
            raise ValueError("Whisper base_url is required")
        self.endpoint = base_url.rstrip("/") + "/audio/transcriptions"
        self.api_key = api_key
        self.model = model
        self.request_timeout = request_timeout

    def initialize(self) -> bool:
        logger.info(f"WhisperHTTPBackend using endpoint {self.endpoint} (model: {self.model})")
        return True

    async def transcribe_file(self, chunk_id: str, audio_path: Path) -> TranscriptionResult:
        """Upload one chunk and return the server's transcription."""
        start_time = time.time()
        audio_path = Path(audio_path)

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        form = aiohttp.FormData()
        form.add_field("model", self.model)
        if self.language:
            form.add_field("language", self.language)
        form.add_field("response_format", "json")
        form.add_field("file", audio_path.read_bytes(),
                       filename=audio_path.name,
                       content_type="audio/wav")

        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint, headers=headers, data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionError(
                            f"Whisper API error: {response.status} - {error_text}", chunk_id)
                    result = await response.json()
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Whisper request failed (chunk={chunk_id}): {e}", chunk_id) from e

        processing_time = time.time() - start_time
        text = (result.get("text") or "").strip()
        logger.debug(f"Whisper transcribed {chunk_id} in {processing_time:.2f}s: '{text[:50]}'")
        return TranscriptionResult(
            text=text,
            confidence=1.0,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            chunk_id=chunk_id,
        )

    def cleanup(self) -> None:
        pass

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update({"endpoint": self.endpoint, "model": self.model})
        return stats
