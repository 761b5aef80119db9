from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, List, Optional

from editlink.editor.base import (
    DecorationStyle,
    EditorDocument,
    EditorSurface,
    range_for_line,
)
from editlink.editor.effects import DelayFn
from editlink.logger import logger
from editlink.patch.locator import normalize_eol
from editlink.patch.models import TextRange
from editlink.settings.models import PacingSettings


@dataclass
class StreamJob:
    """State of one in-flight WRITE_FILE operation."""

    path: str = ""
    nonce: Optional[str] = None
    # Line terminator of the target before it was cleared; None keeps the payload's own
    eol: Optional[str] = None
    pending: Deque[str] = field(default_factory=deque)
    # Next insertion line index
    cursor: int = 0
    producer_finished: bool = False
    finalized: bool = False
    drain_task: Optional["asyncio.Task[int]"] = None

    @property
    def consumer_active(self) -> bool:
        return self.drain_task is not None and not self.drain_task.done()

    def clear(self) -> None:
        self.pending.clear()
        self.cursor = 0
        self.producer_finished = False
        self.drain_task = None


FinalizeFn = Callable[[StreamJob, EditorDocument], Awaitable[None]]


def split_lines(full_content: str, eol: Optional[str] = None) -> List[str]:
    """
    Split on '\\n' and give every segment its terminator back. With an
    explicit eol every line ends with it, whatever the payload used.
    """
    if eol is None:
        return [segment + "\n" for segment in full_content.split("\n")]
    return [segment + eol for segment in normalize_eol(full_content).split("\n")]


class WriteStreamQueue:
    """
    Single-consumer queue turning a full-file payload into a paced sequence
    of line inserts. At most one drain task runs per job; reset() detaches
    the current job so an in-flight drain sees an empty queue and stops.
    """

    def __init__(
        self,
        surface: EditorSurface,
        pacing: Optional[PacingSettings] = None,
        on_finished: Optional[FinalizeFn] = None,
        delay: DelayFn = asyncio.sleep,
    ) -> None:
        self._surface = surface
        self._pacing = pacing or PacingSettings()
        self._on_finished = on_finished
        self._delay = delay
        self._job = StreamJob()
        self._document: Optional[EditorDocument] = None

    @property
    def job(self) -> StreamJob:
        return self._job

    @property
    def on_finished(self) -> Optional[FinalizeFn]:
        return self._on_finished

    @on_finished.setter
    def on_finished(self, fn: Optional[FinalizeFn]) -> None:
        self._on_finished = fn

    def reset(
        self, path: str = "", nonce: Optional[str] = None, eol: Optional[str] = None
    ) -> StreamJob:
        old = self._job
        old.clear()
        if self._document is not None:
            self._clear_narration(self._document)
            self._document = None
        self._job = StreamJob(path=path, nonce=nonce, eol=eol)
        return self._job

    def enqueue_lines(self, full_content: str) -> int:
        lines = split_lines(full_content, self._job.eol)
        self._job.pending.extend(lines)
        # The whole payload arrives at once, so the producer is done immediately
        self._job.producer_finished = True
        return len(lines)

    def drain(self, document: EditorDocument) -> "asyncio.Task[int]":
        """
        Start consuming the current job, or return the drain task already
        running for it. The task result is the number of lines written.
        """
        job = self._job
        task = job.drain_task
        if task is not None and not task.done():
            return task
        self._document = document
        job.drain_task = asyncio.create_task(self._drain_loop(job, document))
        return job.drain_task

    async def _drain_loop(self, job: StreamJob, document: EditorDocument) -> int:
        written = 0
        in_batch = 0
        logger.debug("Drain started", path=document.path, pending=len(job.pending))

        while job.pending:
            chunk = job.pending.popleft()
            try:
                offset = document.offset_at_line(job.cursor)
                ok = await document.insert(offset, chunk)
            except Exception as e:
                logger.exception("Render error", path=document.path, exc=e)
                self._surface.show_error(f"Failed to write {document.path}: {e}")
                return written
            if not ok:
                logger.warning("Document rejected insert", path=document.path, line=job.cursor)
                self._surface.show_error(f"Failed to write {document.path}")
                return written

            job.cursor += 1
            written += 1
            in_batch += 1

            if job is not self._job:
                break
            if in_batch >= self._pacing.batch_lines or not job.pending:
                in_batch = 0
                self._narrate(document, job.cursor - 1)
                await self._delay(self._pacing.line_delay_s)

        if (
            job is self._job
            and job.producer_finished
            and not job.pending
            and not job.finalized
        ):
            job.finalized = True
            self._clear_narration(document)
            if self._on_finished is not None:
                await self._on_finished(job, document)

        logger.debug("Drain finished", path=document.path, written=written)
        return written

    def _narrate(self, document: EditorDocument, line: int) -> None:
        text = document.get_text()
        rng = range_for_line(text, line)
        self._surface.reveal(document, rng)
        self._surface.highlight(document, [rng], DecorationStyle.ACTIVE_LINE)
        if line > 0:
            self._surface.highlight(
                document,
                [TextRange(0, document.offset_at_line(line))],
                DecorationStyle.FADED,
            )

    def _clear_narration(self, document: EditorDocument) -> None:
        self._surface.clear_highlight(document, DecorationStyle.ACTIVE_LINE)
        self._surface.clear_highlight(document, DecorationStyle.FADED)
