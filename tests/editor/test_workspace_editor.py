from __future__ import annotations

import pytest

from editlink.editor.base import DocumentOpenError, line_start_offset, range_for_line
from editlink.editor.workspace import WorkspaceEditor, WorkspacePathError
from editlink.patch.models import TextRange


def test_line_start_offset_clamps():
    text = "ab\ncd\n"
    assert line_start_offset(text, 0) == 0
    assert line_start_offset(text, 1) == 3
    assert line_start_offset(text, 2) == 6
    assert line_start_offset(text, 10) == 6
    assert range_for_line(text, 1) == TextRange(3, 5)


def test_resolve_relative_and_absolute_paths(tmp_path):
    editor = WorkspaceEditor(tmp_path)
    root = editor.root

    assert editor.resolve_path("src/app.py") == root / "src" / "app.py"
    assert editor.resolve_path("/src/app.py") == root / "src" / "app.py"
    assert editor.resolve_path(f"{root.as_posix()}/src/app.py") == root / "src" / "app.py"
    assert editor.resolve_path(f"file://{root.as_posix()}/src/app.py") == (
        root / "src" / "app.py"
    )


def test_resolve_rejects_escape(tmp_path):
    editor = WorkspaceEditor(tmp_path / "ws")
    with pytest.raises(WorkspacePathError):
        editor.resolve_path("../outside.txt")
    with pytest.raises(WorkspacePathError):
        editor.resolve_path("")


def test_resolve_sibling_directory_with_common_prefix(tmp_path):
    (tmp_path / "ws").mkdir()
    editor = WorkspaceEditor(tmp_path / "ws")
    sibling = f"{editor.root.as_posix()}2/file.txt"
    # Not stripped as a workspace prefix; treated as a path inside the workspace
    assert editor.resolve_path(sibling) != tmp_path / "ws2" / "file.txt"


@pytest.mark.asyncio
async def test_open_missing_without_create_raises(tmp_path):
    editor = WorkspaceEditor(tmp_path)
    with pytest.raises(DocumentOpenError):
        await editor.open_document("nope.txt")


@pytest.mark.asyncio
async def test_edit_and_save_roundtrip(tmp_path):
    (tmp_path / "pkg").mkdir()
    target = tmp_path / "pkg" / "mod.py"
    target.write_text("x = 1\r\ny = 2\r\n", encoding="utf-8", newline="")
    editor = WorkspaceEditor(tmp_path)

    doc = await editor.open_document("pkg/mod.py")
    assert doc.path == "pkg/mod.py"
    # Line endings are preserved as read
    assert doc.get_text() == "x = 1\r\ny = 2\r\n"

    assert await doc.delete(TextRange(4, 5))
    assert await doc.insert(4, "10")
    assert target.read_bytes() == b"x = 1\r\ny = 2\r\n"

    assert await doc.save() is True
    assert target.read_bytes() == b"x = 10\r\ny = 2\r\n"

    again = await editor.open_document("/pkg/mod.py")
    assert again is doc


@pytest.mark.asyncio
async def test_create_new_document_in_new_directory(tmp_path):
    editor = WorkspaceEditor(tmp_path)

    doc = await editor.open_document("new/dir/file.txt", create=True)
    assert doc.get_text() == ""
    await doc.insert(0, "hello\n")
    assert await doc.save() is True

    assert (tmp_path / "new" / "dir" / "file.txt").read_text(encoding="utf-8") == "hello\n"


@pytest.mark.asyncio
async def test_save_failure_returns_false(tmp_path):
    editor = WorkspaceEditor(tmp_path)
    doc = await editor.open_document("blocked/file.txt", create=True)
    # A regular file where the parent directory should be
    (tmp_path / "blocked").write_text("", encoding="utf-8")

    assert await doc.save() is False
