from .base import (
    DecorationStyle,
    DocumentOpenError,
    EditorDocument,
    EditorSurface,
    line_start_offset,
    range_for_line,
)
from .effects import HighlightScheduler
from .memory import InMemoryDocument, InMemoryEditor
from .workspace import WorkspaceEditor, WorkspacePathError, open_workspace

__all__ = [
    "DecorationStyle",
    "DocumentOpenError",
    "EditorDocument",
    "EditorSurface",
    "HighlightScheduler",
    "InMemoryDocument",
    "InMemoryEditor",
    "WorkspaceEditor",
    "WorkspacePathError",
    "line_start_offset",
    "open_workspace",
    "range_for_line",
]
