"""Services layer for chunkscribe application logic."""

from .transcription_service import TranscriptionService, create_backend

__all__ = [
    "TranscriptionService",
    "create_backend",
]
