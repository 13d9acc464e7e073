"""chunkscribe - real-time transcription chunk pipeline."""

__version__ = "0.1.0"
