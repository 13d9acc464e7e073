"""Processor status models exposed to observers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .chunk import Paragraph, ParagraphStatus


class ProcessorState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessorStatus:
    """Current processor status; ``message`` is only set for errors."""
    state: ProcessorState
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "ProcessorStatus":
        return cls(ProcessorState.IDLE)

    @classmethod
    def processing(cls) -> "ProcessorStatus":
        return cls(ProcessorState.PROCESSING)

    @classmethod
    def error(cls, message: str) -> "ProcessorStatus":
        return cls(ProcessorState.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.state is ProcessorState.ERROR

    def __str__(self) -> str:
        if self.message:
            return f"{self.state.value}: {self.message}"
        return self.state.value


@dataclass
class ProcessorSnapshot:
    """A consistent read of the processor state, taken under its lock.

    ``version`` increases with every snapshot a processor takes, so observers
    can discard snapshots delivered out of order.
    """
    paragraphs: List[Paragraph]
    pending_count: int
    status: ProcessorStatus
    is_processing: bool
    interim_text: str = ""
    last_error: Optional[str] = None
    counts: dict = field(default_factory=dict)
    version: int = 0

    def __post_init__(self):
        if not self.counts:
            self.counts = {s.value: 0 for s in ParagraphStatus}
            for paragraph in self.paragraphs:
                self.counts[paragraph.status.value] += 1

    @property
    def is_drained(self) -> bool:
        return self.pending_count == 0 and not self.is_processing
