"""Storage for chunk audio and session transcripts."""

from .file_manager import FileManager

__all__ = ["FileManager"]
