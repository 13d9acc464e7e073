"""Data models for the chunkscribe pipeline."""

from .chunk import ChunkItem, Paragraph, ParagraphStatus, FAILED_MARKER, PENDING_PLACEHOLDER
from .status import ProcessorState, ProcessorStatus, ProcessorSnapshot
from .events import AudioEvent
from .transcription import TranscriptionResult

__all__ = [
    "ChunkItem",
    "Paragraph",
    "ParagraphStatus",
    "FAILED_MARKER",
    "PENDING_PLACEHOLDER",
    "ProcessorState",
    "ProcessorStatus",
    "ProcessorSnapshot",
    "AudioEvent",
    "TranscriptionResult",
]
