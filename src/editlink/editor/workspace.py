from __future__ import annotations

import pathlib
from typing import Dict, Optional, Sequence
from urllib.parse import unquote, urlparse

from editlink.logger import logger
from editlink.patch.models import TextRange

from .base import DecorationStyle, DocumentOpenError, EditorDocument
from .memory import InMemoryDocument


class WorkspacePathError(Exception):
    pass


class WorkspaceDocument(InMemoryDocument):
    """Text buffer loaded from disk; save() writes it back as UTF-8."""

    def __init__(self, path: str, abs_path: pathlib.Path, text: str) -> None:
        super().__init__(path, text)
        self.abs_path = abs_path
        self.saved_text = text

    async def save(self) -> bool:
        try:
            self.abs_path.parent.mkdir(parents=True, exist_ok=True)
            with self.abs_path.open("wt", encoding="utf-8", newline="") as fh:
                fh.write(self.get_text())
        except OSError as e:
            logger.warning("Document save failed", path=self.path, error=str(e))
            return False
        self.saved_text = self.get_text()
        self.save_count += 1
        return True


class WorkspaceEditor:
    """
    Headless editor surface over a directory. Documents stay open (and keep
    their unsaved edits) until the editor is discarded.
    """

    def __init__(self, root: pathlib.Path) -> None:
        self._root = root.resolve()
        self._documents: Dict[pathlib.Path, WorkspaceDocument] = {}

    @property
    def root(self) -> pathlib.Path:
        return self._root

    def resolve_path(self, raw: str) -> pathlib.Path:
        """
        Accepts workspace-relative paths, absolute paths under the workspace
        and file:// URIs. Anything resolving outside the workspace is refused.
        """
        rel = raw.strip()
        if not rel:
            raise WorkspacePathError("Empty file path")
        if rel.startswith("file:"):
            rel = unquote(urlparse(rel).path)
        root_str = self._root.as_posix()
        if rel == root_str or rel.startswith(root_str + "/"):
            rel = rel[len(root_str) :]
        rel = rel.lstrip("/\\")
        if not rel:
            raise WorkspacePathError(f"Path points at the workspace root: {raw}")

        abs_path = (self._root / rel).resolve()
        if abs_path == self._root or self._root in abs_path.parents:
            return abs_path
        raise WorkspacePathError(f"Path escapes workspace root: {raw}")

    async def open_document(self, path: str, create: bool = False) -> EditorDocument:
        abs_path = self.resolve_path(path)
        doc = self._documents.get(abs_path)
        if doc is not None:
            return doc

        rel = abs_path.relative_to(self._root).as_posix()
        if abs_path.is_file():
            try:
                with abs_path.open("rt", encoding="utf-8", newline="") as fh:
                    text = fh.read()
            except (OSError, UnicodeDecodeError) as e:
                raise DocumentOpenError(f"Could not open file: {rel}: {e}") from e
        elif create:
            text = ""
        else:
            raise DocumentOpenError(f"Could not find target file: {rel}")

        doc = WorkspaceDocument(rel, abs_path, text)
        if not abs_path.exists():
            doc.saved_text = None
        self._documents[abs_path] = doc
        logger.info("Document opened", path=rel, created=not abs_path.exists())
        return doc

    def reveal(self, document: EditorDocument, rng: TextRange) -> None:
        logger.debug("reveal", path=document.path, start=rng.start, end=rng.end)

    def highlight(
        self,
        document: EditorDocument,
        ranges: Sequence[TextRange],
        style: DecorationStyle,
    ) -> None:
        logger.debug(
            "highlight",
            path=document.path,
            style=style.value,
            ranges=[(r.start, r.end) for r in ranges],
        )

    def clear_highlight(self, document: EditorDocument, style: DecorationStyle) -> None:
        logger.debug("clear_highlight", path=document.path, style=style.value)

    def show_info(self, text: str) -> None:
        logger.info(text)

    def show_warning(self, text: str) -> None:
        logger.warning(text)

    def show_error(self, text: str) -> None:
        logger.error(text)

    def set_status(self, text: str, timeout_s: float) -> None:
        logger.info(text, status_timeout_s=timeout_s)


def open_workspace(root: Optional[pathlib.Path]) -> WorkspaceEditor:
    return WorkspaceEditor(root or pathlib.Path.cwd())
