from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from editlink.editor.base import DecorationStyle, EditorDocument, EditorSurface
from editlink.editor.effects import DelayFn, HighlightScheduler
from editlink.logger import logger
from editlink.settings.models import PacingSettings

from .locator import detect_eol, locate, to_eol
from .models import ApplyReport, MissPolicy, PatchBlock, TextRange


MISS_PREVIEW_CHARS = 50


def _preview(text: str) -> str:
    if len(text) <= MISS_PREVIEW_CHARS:
        return text
    return text[:MISS_PREVIEW_CHARS] + "..."


class PatchApplier:
    """
    Applies SEARCH/REPLACE blocks to a live document, narrating each one:
    the located text is highlighted, removed after a pause, and the
    replacement is inserted and highlighted for a while.
    """

    def __init__(
        self,
        surface: EditorSurface,
        effects: HighlightScheduler,
        pacing: Optional[PacingSettings] = None,
        on_miss: MissPolicy = MissPolicy.ABORT,
        delay: DelayFn = asyncio.sleep,
    ) -> None:
        self._surface = surface
        self._effects = effects
        self._pacing = pacing or PacingSettings()
        self._on_miss = on_miss
        self._delay = delay

    @property
    def on_miss(self) -> MissPolicy:
        return self._on_miss

    async def apply_one(self, document: EditorDocument, block: PatchBlock) -> bool:
        text = document.get_text()
        rng = locate(text, block.search)
        if rng is None:
            logger.warning(
                "Patch search block not found",
                path=document.path,
                search=_preview(block.search),
            )
            return False

        self._surface.reveal(document, rng)
        self._surface.highlight(document, [rng], DecorationStyle.DELETE)
        await self._delay(self._pacing.removal_pause_s)

        # Two edits instead of one replace: the removal is the narrated step
        if not await document.delete(rng):
            self._surface.clear_highlight(document, DecorationStyle.DELETE)
            logger.warning("Document rejected delete", path=document.path, start=rng.start)
            return False
        self._surface.clear_highlight(document, DecorationStyle.DELETE)

        # Inserted text takes the line endings of the document it lands in
        replacement = to_eol(block.replace, detect_eol(text))
        if not await document.insert(rng.start, replacement):
            logger.warning("Document rejected insert", path=document.path, start=rng.start)
            return False

        inserted = TextRange(rng.start, rng.start + len(replacement))
        self._effects.flash(
            document, inserted, DecorationStyle.INSERT, self._pacing.insert_highlight_s
        )
        logger.debug(
            "Patch block applied",
            path=document.path,
            start=rng.start,
            removed=rng.length,
            inserted=inserted.length,
        )
        return True

    async def apply_all(
        self, document: EditorDocument, blocks: Sequence[PatchBlock]
    ) -> ApplyReport:
        report = ApplyReport(total=len(blocks))
        # Strictly sequential: every block is located in the text left by the previous one
        for idx, block in enumerate(blocks):
            if await self.apply_one(document, block):
                report.applied += 1
                continue

            report.missed.append(idx)
            self._surface.show_warning(
                f"Could not find code block to replace:\n{_preview(block.search)}"
            )
            if self._on_miss == MissPolicy.ABORT:
                report.aborted = idx < len(blocks) - 1
                break

        return report
