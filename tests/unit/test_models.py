"""Unit tests for paragraph and status models."""

from datetime import datetime

import pytest

from chunkscribe.errors import InvalidTransitionError
from chunkscribe.models.chunk import Paragraph, ParagraphStatus
from chunkscribe.models.events import AudioEvent
from chunkscribe.models.status import ProcessorSnapshot, ProcessorState, ProcessorStatus


def new_paragraph():
    return Paragraph(paragraph_id="abc", sequence=0, timestamp=datetime(2026, 1, 1, 12, 0), duration=2.5)


@pytest.mark.unit
class TestParagraph:

    def test_new_paragraph_is_pending(self):
        paragraph = new_paragraph()
        assert paragraph.status is ParagraphStatus.PENDING
        assert paragraph.text == ""

    def test_complete(self):
        paragraph = new_paragraph()
        paragraph.complete("Done.")
        assert paragraph.status is ParagraphStatus.COMPLETED
        assert paragraph.text == "Done."

    def test_fail_records_error(self):
        paragraph = new_paragraph()
        paragraph.fail("timeout")
        assert paragraph.status is ParagraphStatus.FAILED
        assert paragraph.error == "timeout"

    @pytest.mark.parametrize("first,second", [
        ("complete", "fail"),
        ("fail", "complete"),
        ("complete", "complete"),
    ])
    def test_transitions_are_monotonic(self, first, second):
        paragraph = new_paragraph()
        getattr(paragraph, first)("x")
        with pytest.raises(InvalidTransitionError):
            getattr(paragraph, second)("y")

    def test_copy_is_independent(self):
        paragraph = new_paragraph()
        copy = paragraph.copy()
        paragraph.complete("Changed.")
        assert copy.status is ParagraphStatus.PENDING
        assert copy.text == ""

    def test_to_dict(self):
        paragraph = new_paragraph()
        paragraph.complete("Hi.")
        data = paragraph.to_dict()
        assert data["id"] == "abc"
        assert data["status"] == "completed"
        assert data["timestamp"] == "2026-01-01T12:00:00"


@pytest.mark.unit
class TestProcessorStatus:

    def test_factories(self):
        assert ProcessorStatus.idle().state is ProcessorState.IDLE
        assert ProcessorStatus.processing().state is ProcessorState.PROCESSING
        error = ProcessorStatus.error("boom")
        assert error.is_error
        assert error.message == "boom"
        assert str(error) == "error: boom"

    def test_equality(self):
        assert ProcessorStatus.idle() == ProcessorStatus.idle()
        assert ProcessorStatus.error("a") != ProcessorStatus.error("b")

    def test_snapshot_counts(self):
        done = new_paragraph()
        done.complete("Ok.")
        snapshot = ProcessorSnapshot(
            paragraphs=[done, new_paragraph()],
            pending_count=0,
            status=ProcessorStatus.processing(),
            is_processing=True,
        )
        assert snapshot.counts == {"pending": 1, "completed": 1, "failed": 0}
        assert not snapshot.is_drained


@pytest.mark.unit
def test_audio_event_duration_is_derived_from_bytes():
    event = AudioEvent(chunk_id="f1", audio_data=b"\x00" * 3200, timestamp=0.0, sequence_number=1)
    assert event.chunk_duration_ms == 100
    assert event.duration_seconds == pytest.approx(0.1)
