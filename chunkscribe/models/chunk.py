"""Chunk and paragraph data models."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path

from ..errors import InvalidTransitionError

PENDING_PLACEHOLDER = "..."
FAILED_MARKER = "[Transcription failed]"


class ParagraphStatus(Enum):
    """Lifecycle of a paragraph's transcription."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ChunkItem:
    """An audio segment waiting in the processor queue."""
    chunk_id: str
    audio_path: Path
    duration: float  # Seconds
    enqueued_at: datetime
    preview_text: str = ""


@dataclass
class Paragraph:
    """Display record tracking one chunk's transcription."""
    paragraph_id: str
    sequence: int  # Insertion index within the session
    timestamp: datetime
    duration: float
    preview_text: str = ""
    text: str = ""
    status: ParagraphStatus = ParagraphStatus.PENDING
    error: str = field(default=None, compare=False)

    @property
    def is_pending(self) -> bool:
        return self.status is ParagraphStatus.PENDING

    @property
    def display_text(self) -> str:
        """Text to show for this paragraph given its current status."""
        if self.status is ParagraphStatus.COMPLETED:
            return self.text
        if self.status is ParagraphStatus.FAILED:
            return FAILED_MARKER
        return self.preview_text or PENDING_PLACEHOLDER

    def complete(self, text: str) -> None:
        """Mark the paragraph as transcribed with the server's text."""
        self._check_pending(ParagraphStatus.COMPLETED)
        self.text = text
        self.status = ParagraphStatus.COMPLETED

    def fail(self, error: str = None) -> None:
        """Mark the paragraph as failed."""
        self._check_pending(ParagraphStatus.FAILED)
        self.error = error
        self.status = ParagraphStatus.FAILED

    def copy(self) -> "Paragraph":
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "id": self.paragraph_id,
            "sequence": self.sequence,
            "timestamp": self.timestamp.isoformat(),
            "duration": self.duration,
            "preview_text": self.preview_text,
            "text": self.text,
            "status": self.status.value,
        }

    def _check_pending(self, target: ParagraphStatus) -> None:
        if self.status is not ParagraphStatus.PENDING:
            raise InvalidTransitionError(
                f"Paragraph {self.paragraph_id} cannot go from "
                f"{self.status.value} to {target.value}")
