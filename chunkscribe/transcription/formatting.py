"""Text normalization and transcript assembly.

All functions here are pure. ``normalize_final`` is idempotent, so it is safe
to apply both when a paragraph completes and again when the transcript is
assembled.
"""

from typing import Iterable

from ..models.chunk import Paragraph, ParagraphStatus

TERMINAL_PUNCTUATION = (".", "!", "?")
PARAGRAPH_SEPARATOR = "\n\n"


def capitalize_first(text: str) -> str:
    """Uppercase the first character and leave the rest unchanged."""
    if not text:
        return text
    return text[0].upper() + text[1:]


def normalize_preview(text: str) -> str:
    """Normalize local preview text shown before the server responds."""
    trimmed = (text or "").strip()
    if not trimmed:
        return ""
    return capitalize_first(trimmed)


def normalize_final(text: str) -> str:
    """Normalize server text: trim, capitalize and end with punctuation."""
    trimmed = normalize_preview(text)
    if not trimmed:
        return ""
    if not trimmed.endswith(TERMINAL_PUNCTUATION):
        trimmed += "."
    return trimmed


def assemble_transcript(paragraphs: Iterable[Paragraph],
                        separator: str = PARAGRAPH_SEPARATOR) -> str:
    """Join completed paragraphs in insertion order.

    Failed and pending paragraphs are left out entirely. Paragraphs are
    sorted by their insertion sequence rather than relying on the order
    they completed in.
    """
    completed = [p for p in paragraphs if p.status is ParagraphStatus.COMPLETED]
    completed.sort(key=lambda p: p.sequence)
    parts = [normalize_final(p.text) for p in completed]
    return separator.join(part for part in parts if part)
