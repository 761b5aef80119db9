from __future__ import annotations

import pytest

from editlink.editor.base import DecorationStyle
from editlink.editor.effects import HighlightScheduler
from editlink.editor.memory import InMemoryDocument, InMemoryEditor
from editlink.patch.applier import PatchApplier
from editlink.patch.models import MissPolicy, PatchBlock, TextRange


def _applier(editor: InMemoryEditor, pacing, on_miss=MissPolicy.ABORT) -> PatchApplier:
    return PatchApplier(editor, HighlightScheduler(editor), pacing=pacing, on_miss=on_miss)


@pytest.mark.asyncio
async def test_apply_one_replaces_first_occurrence(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "call foo() here; foo() again")
    applier = _applier(editor, fast_pacing)

    ok = await applier.apply_one(doc, PatchBlock(search="foo()", replace="bar()"))

    assert ok is True
    assert doc.get_text() == "call bar() here; foo() again"


@pytest.mark.asyncio
async def test_apply_one_uses_delete_then_insert(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "x = old_value\n")
    applier = _applier(editor, fast_pacing)

    await applier.apply_one(doc, PatchBlock(search="old_value", replace="new"))

    assert doc.edits == [
        ("delete", TextRange(4, 13), "old_value"),
        ("insert", 4, "new"),
    ]


@pytest.mark.asyncio
async def test_apply_one_narrates_removal_and_insertion(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "keep\nremove me\nkeep\n")
    applier = _applier(editor, fast_pacing)

    await applier.apply_one(doc, PatchBlock(search="remove me", replace="added line"))

    kinds = [(c.kind, c.style) for c in editor.visual]
    assert kinds[:3] == [
        ("reveal", None),
        ("highlight", DecorationStyle.DELETE),
        ("clear", DecorationStyle.DELETE),
    ]
    inserted = editor.calls("highlight", DecorationStyle.INSERT)
    assert inserted[0].ranges == (TextRange(5, 15),)


@pytest.mark.asyncio
async def test_apply_one_miss_leaves_document_untouched(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "nothing to see")
    applier = _applier(editor, fast_pacing)

    ok = await applier.apply_one(doc, PatchBlock(search="missing", replace="x"))

    assert ok is False
    assert doc.get_text() == "nothing to see"
    assert doc.edits == []
    assert editor.visual == []


@pytest.mark.asyncio
async def test_apply_all_sequential_dependency(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "step = 1\n")
    applier = _applier(editor, fast_pacing)

    # The second SEARCH only exists after the first block has been applied
    blocks = [
        PatchBlock(search="step = 1", replace="step = 2"),
        PatchBlock(search="step = 2", replace="step = 3"),
    ]
    report = await applier.apply_all(doc, blocks)

    assert report.applied == 2
    assert report.complete
    assert doc.get_text() == "step = 3\n"


@pytest.mark.asyncio
async def test_apply_all_aborts_on_first_miss(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "one\ntwo\nthree\n")
    applier = _applier(editor, fast_pacing)

    blocks = [
        PatchBlock(search="one", replace="1"),
        PatchBlock(search="missing", replace="?"),
        PatchBlock(search="three", replace="3"),
    ]
    report = await applier.apply_all(doc, blocks)

    assert report.applied == 1
    assert report.missed == [1]
    assert report.aborted is True
    assert doc.get_text() == "1\ntwo\nthree\n"
    assert len(editor.warnings) == 1
    assert "missing" in editor.warnings[0]


@pytest.mark.asyncio
async def test_apply_all_skip_policy_continues(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "one\ntwo\nthree\n")
    applier = _applier(editor, fast_pacing, on_miss=MissPolicy.SKIP)

    blocks = [
        PatchBlock(search="missing", replace="?"),
        PatchBlock(search="three", replace="3"),
    ]
    report = await applier.apply_all(doc, blocks)

    assert report.applied == 1
    assert report.missed == [0]
    assert report.aborted is False
    assert doc.get_text() == "one\ntwo\n3\n"


@pytest.mark.asyncio
async def test_apply_one_trimmed_search(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "def f():\n    pass\n")
    applier = _applier(editor, fast_pacing)

    ok = await applier.apply_one(
        doc, PatchBlock(search="\ndef f():\n    pass\n\n", replace="def g():\n    pass")
    )

    assert ok is True
    assert doc.get_text() == "def g():\n    pass\n"


@pytest.mark.asyncio
async def test_apply_one_crlf_document(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "a\r\nold\r\nb\r\n")
    applier = _applier(editor, fast_pacing)

    ok = await applier.apply_one(doc, PatchBlock(search="old\nb", replace="new\nb"))

    assert ok is True
    assert doc.get_text() == "a\r\nnew\r\nb\r\n"


@pytest.mark.asyncio
async def test_apply_one_crlf_insert_highlight_covers_converted_text(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "x\r\nold\r\n")
    applier = _applier(editor, fast_pacing)

    ok = await applier.apply_one(doc, PatchBlock(search="old", replace="one\ntwo"))

    assert ok is True
    assert doc.get_text() == "x\r\none\r\ntwo\r\n"
    inserted = editor.calls("highlight", DecorationStyle.INSERT)
    assert inserted[-1].ranges == (TextRange(3, 11),)


@pytest.mark.asyncio
async def test_apply_one_waits_removal_pause(fast_pacing) -> None:
    editor = InMemoryEditor()
    doc = InMemoryDocument("a.py", "abc")
    delays: list[float] = []

    async def record_delay(seconds: float) -> None:
        delays.append(seconds)
        # The located range is highlighted but still present during the pause
        assert doc.get_text() == "abc"

    pacing = fast_pacing.model_copy(update={"removal_pause_s": 0.6})
    applier = PatchApplier(
        editor, HighlightScheduler(editor), pacing=pacing, delay=record_delay
    )

    await applier.apply_one(doc, PatchBlock(search="b", replace="B"))

    assert delays == [0.6]
    assert doc.get_text() == "aBc"
