"""Console monitor that renders paragraph and status updates.

Subscribes to the processor's pub/sub topics and prints each paragraph
change and status transition with rich. ``print_summary`` renders the full
paragraph table and the assembled transcript.
"""

import logging
import threading
from typing import Dict, List, Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.chunk import Paragraph, ParagraphStatus
from ..models.status import ProcessorSnapshot, ProcessorState
from .formatting import assemble_transcript
from .publisher import PARAGRAPH_TOPIC, STATUS_TOPIC

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    ParagraphStatus.PENDING: "yellow",
    ParagraphStatus.COMPLETED: "green",
    ParagraphStatus.FAILED: "bold red",
}


class ParagraphMonitor:
    """Keeps the latest copy of every paragraph and prints changes."""

    def __init__(self,
                 console: Optional[Console] = None,
                 paragraph_topic: str = PARAGRAPH_TOPIC,
                 status_topic: str = STATUS_TOPIC,
                 verbose: bool = True):
        """Initialize the monitor and subscribe to processor topics.

        Args:
            console: Console to print to (a new one by default)
            paragraph_topic: Topic carrying paragraph updates
            status_topic: Topic carrying status snapshots
            verbose: Print every update as it arrives
        """
        self.console = console or Console()
        self.paragraph_topic = paragraph_topic
        self.status_topic = status_topic
        self.verbose = verbose

        self.paragraphs: Dict[str, Paragraph] = {}
        self.last_snapshot: Optional[ProcessorSnapshot] = None
        self.lock = threading.RLock()

        pub.subscribe(self._on_paragraph, paragraph_topic)
        pub.subscribe(self._on_status, status_topic)
        logger.info(f"ParagraphMonitor subscribed to {paragraph_topic} and {status_topic}")

    def _on_paragraph(self, paragraph: Paragraph) -> None:
        with self.lock:
            known = self.paragraphs.get(paragraph.paragraph_id)
            if known is not None and not known.is_pending and paragraph.is_pending:
                # Enqueue notification delivered after the chunk already finished
                return
            self.paragraphs[paragraph.paragraph_id] = paragraph
        if self.verbose:
            style = STATUS_STYLES[paragraph.status]
            self.console.print(Text.assemble(
                (f"[{paragraph.status.value:>9}] ", style),
                f"#{paragraph.sequence + 1} ",
                paragraph.display_text,
            ))

    def _on_status(self, snapshot: ProcessorSnapshot) -> None:
        with self.lock:
            previous = self.last_snapshot
            if previous is not None and snapshot.version <= previous.version:
                logger.debug(f"Dropping stale status snapshot v{snapshot.version} "
                             f"(have v{previous.version})")
                return
            self.last_snapshot = snapshot
            if not snapshot.paragraphs:
                # A reset empties the session
                self.paragraphs.clear()
        if not self.verbose:
            return
        if previous is None or previous.status != snapshot.status:
            if snapshot.status.state is ProcessorState.ERROR:
                self.console.print(Text.assemble(("Transcription error: ", "bold red"), snapshot.status.message or ""))
            else:
                self.console.print(f"[dim]status: {snapshot.status} "
                                   f"(pending: {snapshot.pending_count})[/]")

    def ordered_paragraphs(self) -> List[Paragraph]:
        with self.lock:
            return sorted(self.paragraphs.values(), key=lambda p: p.sequence)

    def print_summary(self) -> None:
        """Print a table of all paragraphs followed by the final transcript."""
        paragraphs = self.ordered_paragraphs()

        table = Table(title="Transcription Paragraphs", show_header=True, header_style="bold magenta")
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Text", style="white")
        for paragraph in paragraphs:
            table.add_row(
                str(paragraph.sequence + 1),
                Text(paragraph.status.value, style=STATUS_STYLES[paragraph.status]),
                f"{paragraph.duration:.1f}s",
                Text(paragraph.display_text),
            )
        self.console.print(table)

        completed = sum(1 for p in paragraphs if p.status is ParagraphStatus.COMPLETED)
        failed = sum(1 for p in paragraphs if p.status is ParagraphStatus.FAILED)
        self.console.print(f"Completed: {completed}  Failed: {failed}  Total: {len(paragraphs)}")

        transcript = assemble_transcript(paragraphs)
        if transcript:
            self.console.print(Panel(Text(transcript), title="Final Transcript", border_style="bright_blue"))

    def shutdown(self) -> None:
        """Unsubscribe from the processor topics."""
        try:
            pub.unsubscribe(self._on_paragraph, self.paragraph_topic)
            pub.unsubscribe(self._on_status, self.status_topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        logger.info("ParagraphMonitor shutdown complete")
