from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from editlink.patch.models import TextRange

from .base import DecorationStyle, DocumentOpenError, EditorDocument, line_start_offset


class InMemoryDocument:
    def __init__(self, path: str, text: str = "", save_result: bool = True) -> None:
        self._path = path
        self._text = text
        self.save_result = save_result
        self.saved_text: Optional[str] = None
        self.save_count = 0
        # Every successful edit, in order: ("delete", range, removed) / ("insert", offset, text)
        self.edits: List[Tuple[str, object, str]] = []

    @property
    def path(self) -> str:
        return self._path

    @property
    def dirty(self) -> bool:
        return self.saved_text != self._text

    def get_text(self) -> str:
        return self._text

    def line_count(self) -> int:
        return self._text.count("\n") + 1

    def offset_at_line(self, line: int) -> int:
        return line_start_offset(self._text, line)

    async def delete(self, rng: TextRange) -> bool:
        if rng.end > len(self._text):
            return False
        removed = self._text[rng.start : rng.end]
        self._text = self._text[: rng.start] + self._text[rng.end :]
        self.edits.append(("delete", rng, removed))
        return True

    async def insert(self, offset: int, text: str) -> bool:
        if offset < 0 or offset > len(self._text):
            return False
        self._text = self._text[:offset] + text + self._text[offset:]
        self.edits.append(("insert", offset, text))
        return True

    async def save(self) -> bool:
        if not self.save_result:
            return False
        self.saved_text = self._text
        self.save_count += 1
        return True


@dataclass
class VisualCall:
    kind: str
    path: str
    style: Optional[DecorationStyle] = None
    ranges: Tuple[TextRange, ...] = ()


class InMemoryEditor:
    """
    Editor surface holding documents in a dict and recording every visual call
    and notification. Used headless and in tests.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None) -> None:
        self.documents: Dict[str, InMemoryDocument] = {
            path: InMemoryDocument(path, text) for path, text in (files or {}).items()
        }
        self.visual: List[VisualCall] = []
        self.infos: List[str] = []
        self.warnings: List[str] = []
        self.errors: List[str] = []
        self.statuses: List[str] = []
        # Current decorations per (path, style)
        self.decorations: Dict[Tuple[str, DecorationStyle], Tuple[TextRange, ...]] = {}

    async def open_document(self, path: str, create: bool = False) -> EditorDocument:
        doc = self.documents.get(path)
        if doc is None:
            if not create:
                raise DocumentOpenError(f"Could not find target file: {path}")
            doc = InMemoryDocument(path)
            self.documents[path] = doc
        return doc

    def reveal(self, document: EditorDocument, rng: TextRange) -> None:
        self.visual.append(VisualCall("reveal", document.path, ranges=(rng,)))

    def highlight(
        self,
        document: EditorDocument,
        ranges: Sequence[TextRange],
        style: DecorationStyle,
    ) -> None:
        self.decorations[(document.path, style)] = tuple(ranges)
        self.visual.append(
            VisualCall("highlight", document.path, style=style, ranges=tuple(ranges))
        )

    def clear_highlight(self, document: EditorDocument, style: DecorationStyle) -> None:
        self.decorations.pop((document.path, style), None)
        self.visual.append(VisualCall("clear", document.path, style=style))

    def show_info(self, text: str) -> None:
        self.infos.append(text)

    def show_warning(self, text: str) -> None:
        self.warnings.append(text)

    def show_error(self, text: str) -> None:
        self.errors.append(text)

    def set_status(self, text: str, timeout_s: float) -> None:
        self.statuses.append(text)

    def calls(self, kind: str, style: Optional[DecorationStyle] = None) -> List[VisualCall]:
        return [
            c for c in self.visual if c.kind == kind and (style is None or c.style == style)
        ]
