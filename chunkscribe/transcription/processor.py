"""Sequential chunk processor for real-time transcription.

Chunks are queued by the audio producer and transcribed strictly one at a
time, in arrival order, by a single worker. Each chunk gets a paragraph as
soon as it is enqueued; the worker later replaces the paragraph's preview
with the server's text or marks it failed.

All queue, paragraph and status state is guarded by one re-entrant lock. The
worker is a daemon thread running its own asyncio event loop, and each chunk
runs on it as a single coroutine, so at most one backend call is ever in
flight. ``reset()`` bumps a session generation counter; a worker belonging to
an older generation never touches the new session's state.
"""

import asyncio
import logging
import threading
import uuid
from collections import deque
from concurrent.futures import Future
from datetime import datetime
from pathlib import Path
from typing import Callable, Deque, List, Optional, Union

from ..errors import ProcessorClosedError
from ..models.chunk import ChunkItem, Paragraph, ParagraphStatus
from ..models.status import ProcessorSnapshot, ProcessorStatus
from .base import AbstractTranscriptionBackend
from .formatting import assemble_transcript, normalize_final, normalize_preview
from .publisher import ProcessorEventPublisher

logger = logging.getLogger(__name__)


def _remove_file(path: Path) -> None:
    Path(path).unlink()


class SequentialChunkProcessor:
    """Serializes chunk transcription through a single in-flight worker."""

    def __init__(self,
                 backend: AbstractTranscriptionBackend,
                 publisher: Optional[ProcessorEventPublisher] = None,
                 delete_resource: Optional[Callable[[Path], object]] = None,
                 name: str = "realtime"):
        """Initialize the processor and start its worker loop.

        Args:
            backend: Transcription backend used for every chunk
            publisher: Optional publisher notified after every state change
            delete_resource: Called with each chunk's audio path once the
                queue is done with it; failures are ignored
            name: Name used for the worker thread and log messages
        """
        self.name = name
        self.backend = backend
        self.publisher = publisher
        self._delete_resource = delete_resource or _remove_file

        self._lock = threading.RLock()
        self._drained = threading.Condition(self._lock)
        self._queue: Deque[ChunkItem] = deque()
        self._paragraphs: List[Paragraph] = []
        self._interim_text = ""
        self._status = ProcessorStatus.idle()
        self._last_error: Optional[str] = None
        self._is_processing = False
        self._current_future: Optional[Future] = None
        self._current_chunk: Optional[ChunkItem] = None
        self._generation = 0
        self._sequence = 0
        self._closed = False
        self._snapshot_version = 0

        self._loop = asyncio.new_event_loop()
        self._worker_thread = threading.Thread(target=self._run_loop, daemon=True)
        self._worker_thread.name = f"worker_{name}"
        self._worker_thread.start()
        logger.info(f"SequentialChunkProcessor '{name}' started")

    # Public API

    def enqueue(self, audio_path: Union[str, Path], duration: float, preview_text: str = "") -> str:
        """Queue an audio chunk for transcription.

        The chunk's paragraph is created immediately with a pending status and
        the normalized preview. The queue takes ownership of ``audio_path``
        and deletes it once the chunk is processed.

        Returns:
            The id shared by the chunk and its paragraph
        """
        preview_text = preview_text or ""
        with self._lock:
            if self._closed:
                raise ProcessorClosedError(f"Processor '{self.name}' is shut down")

            chunk_id = uuid.uuid4().hex
            now = datetime.now()
            chunk = ChunkItem(
                chunk_id=chunk_id,
                audio_path=Path(audio_path),
                duration=float(duration),
                enqueued_at=now,
                preview_text=preview_text,
            )
            paragraph = Paragraph(
                paragraph_id=chunk_id,
                sequence=self._sequence,
                timestamp=now,
                duration=chunk.duration,
                preview_text=normalize_preview(preview_text),
            )
            self._sequence += 1
            self._queue.append(chunk)
            self._paragraphs.append(paragraph)
            # The interim text now lives in the paragraph's preview
            self._interim_text = ""

            logger.info(f"[{self.name}] Chunk {chunk_id} enqueued "
                        f"({chunk.duration:.1f}s, preview: '{preview_text[:30]}')")

            self._process_next_if_idle()
            paragraph_copy = paragraph.copy()
            snapshot = self._snapshot_locked()

        self._publish(paragraph=paragraph_copy, snapshot=snapshot)
        return chunk_id

    def final_transcript(self) -> str:
        """Completed paragraphs joined by blank lines, in insertion order."""
        with self._lock:
            paragraphs = list(self._paragraphs)
        return assemble_transcript(paragraphs)

    def reset(self) -> None:
        """Cancel in-flight work and clear all queue and paragraph state."""
        with self._lock:
            dropped = self._abandon_work()
            self._paragraphs.clear()
            self._interim_text = ""
            self._status = ProcessorStatus.idle()
            self._last_error = None
            self._sequence = 0
            snapshot = self._snapshot_locked()

        self._release_all(dropped)
        logger.info(f"[{self.name}] Reset ({len(dropped)} unfinished chunks dropped)")
        self._publish(snapshot=snapshot)

    def wait_for_drain(self, timeout: Optional[float] = None) -> bool:
        """Block until no chunk is queued or in flight.

        Must not be called from the worker thread (e.g. from a pub/sub
        listener), since the worker is what drains the queue.

        Returns:
            True once drained, False if ``timeout`` expired first
        """
        with self._drained:
            drained = self._drained.wait_for(self._is_drained_locked, timeout)
        if drained:
            logger.debug(f"[{self.name}] All chunks processed")
        return drained

    async def wait_for_drain_async(self, poll_interval: float = 0.1) -> None:
        """Coroutine variant of ``wait_for_drain`` for asyncio callers."""
        while self.has_pending_work:
            await asyncio.sleep(poll_interval)
        logger.debug(f"[{self.name}] All chunks processed")

    def shutdown(self, timeout: float = 30.0) -> bool:
        """Stop accepting chunks, wait for the queue, then stop the worker.

        Returns:
            True if the queue drained before ``timeout``
        """
        with self._lock:
            if self._closed and not self._worker_thread.is_alive():
                return True
            self._closed = True

        logger.info(f"[{self.name}] Waiting up to {timeout}s for queue to drain...")
        drained = self.wait_for_drain(timeout)
        if not drained:
            with self._lock:
                logger.warning(f"[{self.name}] Timeout reached while waiting for queue. "
                               f"{len(self._queue)} chunks remain.")
                dropped = self._abandon_work()
            self._release_all(dropped)

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._worker_thread.join(5.0)
        if self._worker_thread.is_alive():
            logger.warning(f"Worker thread {self._worker_thread.name} did not terminate cleanly.")

        logger.info(f"[{self.name}] Processor shutdown complete (drained={drained})")
        return drained

    def __enter__(self) -> "SequentialChunkProcessor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # Observation

    @property
    def paragraphs(self) -> List[Paragraph]:
        with self._lock:
            return [p.copy() for p in self._paragraphs]

    @property
    def pending_count(self) -> int:
        """Chunks waiting in the queue, not counting the one in flight."""
        with self._lock:
            return len(self._queue)

    @property
    def status(self) -> ProcessorStatus:
        with self._lock:
            return self._status

    @property
    def last_error(self) -> Optional[str]:
        """Message of the most recent chunk failure since the last reset."""
        with self._lock:
            return self._last_error

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._is_processing

    @property
    def has_pending_work(self) -> bool:
        with self._lock:
            return not self._is_drained_locked()

    @property
    def completed_count(self) -> int:
        with self._lock:
            return sum(1 for p in self._paragraphs if p.status is ParagraphStatus.COMPLETED)

    @property
    def interim_text(self) -> str:
        with self._lock:
            return self._interim_text

    @interim_text.setter
    def interim_text(self, text: str) -> None:
        with self._lock:
            self._interim_text = text or ""
            snapshot = self._snapshot_locked()
        self._publish(snapshot=snapshot)

    def snapshot(self) -> ProcessorSnapshot:
        with self._lock:
            return self._snapshot_locked()

    # Worker

    def _run_loop(self) -> None:
        """Body of the worker thread: run the private event loop until stopped."""
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self._loop.close()
            logger.debug(f"Worker thread {threading.current_thread().name} exiting and closing its event loop.")

    def _process_next_if_idle(self) -> None:
        """Dispatch the queue head unless a chunk is already in flight.

        Caller must hold the lock.
        """
        if self._is_processing or not self._queue:
            return

        self._is_processing = True
        self._status = ProcessorStatus.processing()
        chunk = self._queue.popleft()
        self._current_chunk = chunk
        self._current_future = asyncio.run_coroutine_threadsafe(
            self._run_chunk(chunk, self._generation), self._loop)

    async def _run_chunk(self, chunk: ChunkItem, generation: int) -> None:
        try:
            await self._transcribe_chunk(chunk, generation)
        except Exception as e:
            logger.error(f"Unhandled exception while processing chunk {chunk.chunk_id}: {e}", exc_info=True)
        finally:
            self._release_resource(chunk)
            self._finish_chunk(generation)

    async def _transcribe_chunk(self, chunk: ChunkItem, generation: int) -> None:
        logger.info(f"[{self.name}] Processing chunk {chunk.chunk_id} ({chunk.audio_path.name})")
        try:
            result = await self.backend.transcribe_file(chunk.chunk_id, chunk.audio_path)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"[{self.name}] Failed to transcribe chunk {chunk.chunk_id}: {message}")
            self._record_failure(chunk, generation, message)
            return
        self._record_success(chunk, generation, result.text)

    def _record_success(self, chunk: ChunkItem, generation: int, text: str) -> None:
        formatted = normalize_final(text)
        with self._lock:
            paragraph = self._current_paragraph(chunk, generation)
            if paragraph is None:
                return
            paragraph.complete(formatted)
            paragraph_copy = paragraph.copy()
        logger.info(f"[{self.name}] Chunk transcribed: '{formatted[:50]}'")
        self._publish(paragraph=paragraph_copy)

    def _record_failure(self, chunk: ChunkItem, generation: int, message: str) -> None:
        with self._lock:
            paragraph = self._current_paragraph(chunk, generation)
            if paragraph is None:
                return
            paragraph.fail(message)
            self._status = ProcessorStatus.error(message)
            self._last_error = message
            paragraph_copy = paragraph.copy()
            snapshot = self._snapshot_locked()
        self._publish(paragraph=paragraph_copy, snapshot=snapshot)

    def _finish_chunk(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._is_processing = False
            self._current_future = None
            self._current_chunk = None
            if self._queue:
                self._process_next_if_idle()
            else:
                self._status = ProcessorStatus.idle()
                self._drained.notify_all()
            snapshot = self._snapshot_locked()
        self._publish(snapshot=snapshot)

    def _current_paragraph(self, chunk: ChunkItem, generation: int) -> Optional[Paragraph]:
        """Paragraph for a finished chunk, or None if a reset removed it.

        Caller must hold the lock.
        """
        if generation != self._generation:
            logger.debug(f"[{self.name}] Dropping result for chunk {chunk.chunk_id} from a previous session")
            return None
        for paragraph in self._paragraphs:
            if paragraph.paragraph_id == chunk.chunk_id:
                return paragraph
        logger.debug(f"[{self.name}] Paragraph {chunk.chunk_id} no longer exists")
        return None

    # Helpers

    def _abandon_work(self) -> List[ChunkItem]:
        """Cancel the in-flight chunk and empty the queue.

        Caller must hold the lock. Returns the dropped chunks so their
        audio can be released outside the lock.
        """
        self._generation += 1
        dropped = []
        if self._current_future is not None:
            # A chunk cancelled before it starts never reaches its own cleanup
            self._current_future.cancel()
            self._current_future = None
            dropped.append(self._current_chunk)
        self._current_chunk = None
        self._is_processing = False
        dropped.extend(self._queue)
        self._queue.clear()
        self._drained.notify_all()
        return dropped

    def _release_all(self, chunks: List[ChunkItem]) -> None:
        for chunk in chunks:
            self._release_resource(chunk)

    def _release_resource(self, chunk: ChunkItem) -> None:
        try:
            self._delete_resource(chunk.audio_path)
        except Exception as e:
            logger.debug(f"Could not delete chunk audio {chunk.audio_path}: {e}")

    def _is_drained_locked(self) -> bool:
        return not self._queue and not self._is_processing

    def _snapshot_locked(self) -> ProcessorSnapshot:
        # Published outside the lock, so observers order snapshots by version
        self._snapshot_version += 1
        return ProcessorSnapshot(
            version=self._snapshot_version,
            paragraphs=[p.copy() for p in self._paragraphs],
            pending_count=len(self._queue),
            status=self._status,
            is_processing=self._is_processing,
            interim_text=self._interim_text,
            last_error=self._last_error,
        )

    def _publish(self, paragraph: Optional[Paragraph] = None,
                 snapshot: Optional[ProcessorSnapshot] = None) -> None:
        if self.publisher is None:
            return
        try:
            if paragraph is not None:
                self.publisher.publish_paragraph(paragraph)
            if snapshot is not None:
                self.publisher.publish_status(snapshot)
        except Exception as e:
            logger.error(f"Error publishing processor event: {e}", exc_info=True)
