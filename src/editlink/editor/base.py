from __future__ import annotations

from enum import Enum
from typing import Protocol, Sequence, runtime_checkable

from editlink.patch.models import TextRange


class DecorationStyle(str, Enum):
    # Line currently being streamed
    ACTIVE_LINE = "active_line"
    # Lines already streamed
    FADED = "faded"
    # Text about to be removed by a patch
    DELETE = "delete"
    # Text just inserted by a patch
    INSERT = "insert"


class DocumentOpenError(Exception):
    pass


def line_start_offset(text: str, line: int) -> int:
    """Offset of the first character of a zero-based line, clamped to the end of text."""
    if line <= 0:
        return 0
    pos = -1
    for _ in range(line):
        pos = text.find("\n", pos + 1)
        if pos == -1:
            return len(text)
    return pos + 1


def range_for_line(text: str, line: int) -> TextRange:
    start = line_start_offset(text, line)
    end = text.find("\n", start)
    if end == -1:
        end = len(text)
    return TextRange(start, end)


@runtime_checkable
class EditorDocument(Protocol):
    """A live, editable text buffer backed by some persistent store."""

    @property
    def path(self) -> str: ...

    def get_text(self) -> str: ...

    def line_count(self) -> int: ...

    def offset_at_line(self, line: int) -> int: ...

    async def delete(self, rng: TextRange) -> bool: ...

    async def insert(self, offset: int, text: str) -> bool: ...

    async def save(self) -> bool: ...


@runtime_checkable
class EditorSurface(Protocol):
    """
    The editor the agent drives. Visual calls are fire-and-forget and must not
    raise for ordinary use; notifications are transient messages for the user.
    """

    async def open_document(self, path: str, create: bool = False) -> EditorDocument: ...

    def reveal(self, document: EditorDocument, rng: TextRange) -> None: ...

    def highlight(
        self,
        document: EditorDocument,
        ranges: Sequence[TextRange],
        style: DecorationStyle,
    ) -> None: ...

    def clear_highlight(self, document: EditorDocument, style: DecorationStyle) -> None: ...

    def show_info(self, text: str) -> None: ...

    def show_warning(self, text: str) -> None: ...

    def show_error(self, text: str) -> None: ...

    def set_status(self, text: str, timeout_s: float) -> None: ...
