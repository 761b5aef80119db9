from __future__ import annotations

from bisect import bisect_left
from typing import List, Optional

from .models import TextRange


def normalize_eol(text: str) -> str:
    return text.replace("\r\n", "\n")


def detect_eol(text: str) -> Optional[str]:
    """The document's line terminator, or None when it has no line break yet."""
    if "\r\n" in text:
        return "\r\n"
    if "\n" in text:
        return "\n"
    return None


def to_eol(text: str, eol: Optional[str]) -> str:
    """Rewrite text to use eol; text is returned as-is when eol is None."""
    if eol is None:
        return text
    text = normalize_eol(text)
    if eol == "\n":
        return text
    return text.replace("\n", eol)


class _OffsetMap:
    """
    Maps offsets in the CRLF-normalized text back to the original text.
    Each removed '\r' shifts every later normalized offset by one.
    """

    def __init__(self, original: str) -> None:
        # Normalized offsets of every '\n' that was preceded by '\r' in the original
        self._crlf: List[int] = []
        removed = 0
        pos = original.find("\r\n")
        while pos != -1:
            self._crlf.append(pos - removed)
            removed += 1
            pos = original.find("\r\n", pos + 2)

    def to_original(self, offset: int) -> int:
        # A '\r' precedes the newline at normalized offset n; offsets <= n keep
        # the shift of earlier pairs only, so a range ending right before '\n'
        # does not swallow the '\r'.
        return offset + bisect_left(self._crlf, offset)

    def range_to_original(self, start: int, end: int) -> TextRange:
        orig_start = self.to_original(start)
        orig_end = self.to_original(end)
        return TextRange(orig_start, max(orig_start, orig_end))


def locate(document_text: str, search_text: str) -> Optional[TextRange]:
    """
    Find search_text in document_text, ignoring CRLF/LF differences.

    The first occurrence wins. When the exact text is missing, the search is
    retried with surrounding whitespace trimmed. Returns the range in
    document_text coordinates, or None when nothing matches.
    """
    norm_doc = normalize_eol(document_text)
    norm_search = normalize_eol(search_text)

    idx = norm_doc.find(norm_search)
    length = len(norm_search)
    if idx == -1:
        trimmed = norm_search.strip()
        # Whitespace-only search text must not match the start of the document
        if not trimmed:
            return None
        idx = norm_doc.find(trimmed)
        length = len(trimmed)
        if idx == -1:
            return None

    if "\r\n" not in document_text:
        return TextRange(idx, idx + length)
    return _OffsetMap(document_text).range_to_original(idx, idx + length)
