"""Transcription pipeline for chunkscribe."""

from .base import AbstractTranscriptionBackend
from ..models.transcription import TranscriptionResult
from .formatting import (
    assemble_transcript,
    capitalize_first,
    normalize_final,
    normalize_preview,
)
from .processor import SequentialChunkProcessor
from .publisher import ProcessorEventPublisher, PARAGRAPH_TOPIC, STATUS_TOPIC
from .monitor import ParagraphMonitor

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionResult",
    "assemble_transcript",
    "capitalize_first",
    "normalize_final",
    "normalize_preview",
    "SequentialChunkProcessor",
    "ProcessorEventPublisher",
    "PARAGRAPH_TOPIC",
    "STATUS_TOPIC",
    "ParagraphMonitor",
]
