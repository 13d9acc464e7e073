"""Exception types raised by the chunkscribe pipeline."""


class ChunkScribeError(Exception):
    """Base class for all chunkscribe errors."""


class TranscriptionError(ChunkScribeError):
    """A transcription backend failed to transcribe a chunk."""

    def __init__(self, message: str, chunk_id: str = None):
        super().__init__(message)
        self.chunk_id = chunk_id


class ProcessorClosedError(ChunkScribeError):
    """Raised when a chunk is enqueued after the processor was shut down."""


class InvalidTransitionError(ChunkScribeError):
    """Raised on an illegal paragraph status transition."""
