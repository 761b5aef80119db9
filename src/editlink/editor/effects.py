from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Tuple

from editlink.logger import logger
from editlink.patch.models import TextRange

from .base import DecorationStyle, EditorDocument, EditorSurface


DelayFn = Callable[[float], Awaitable[None]]

_Key = Tuple[str, DecorationStyle]


class HighlightScheduler:
    """
    Shows a highlight and clears it after a delay. Pending clears are tasks
    keyed by (document path, style); a newer highlight for the same key
    cancels the older clear so a stale timer never wipes it.
    """

    def __init__(self, surface: EditorSurface, delay: DelayFn = asyncio.sleep) -> None:
        self._surface = surface
        self._delay = delay
        self._pending: Dict[_Key, Tuple[EditorDocument, asyncio.Task[None]]] = {}

    @property
    def pending_count(self) -> int:
        return sum(1 for _, task in self._pending.values() if not task.done())

    def flash(
        self,
        document: EditorDocument,
        rng: TextRange,
        style: DecorationStyle,
        duration_s: float,
    ) -> asyncio.Task[None]:
        key = (document.path, style)
        self._cancel(key)
        self._surface.highlight(document, [rng], style)
        task = asyncio.create_task(self._clear_later(key, document, duration_s))
        self._pending[key] = (document, task)
        return task

    async def _clear_later(
        self, key: _Key, document: EditorDocument, duration_s: float
    ) -> None:
        await self._delay(duration_s)
        current = self._pending.get(key)
        if current is not None and current[1] is asyncio.current_task():
            del self._pending[key]
        self._clear(document, key[1])

    def _clear(self, document: EditorDocument, style: DecorationStyle) -> None:
        try:
            self._surface.clear_highlight(document, style)
        except Exception as e:
            logger.warning(
                "Highlight clear failed", path=document.path, style=style.value, exc=e
            )

    def _cancel(self, key: _Key) -> Optional[EditorDocument]:
        entry = self._pending.pop(key, None)
        if entry is None:
            return None
        document, task = entry
        if not task.done():
            task.cancel()
        return document

    def cancel_all(self, clear: bool = True) -> None:
        for key in list(self._pending.keys()):
            document = self._cancel(key)
            if clear and document is not None:
                self._clear(document, key[1])
