from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Union

from editlink.editor.base import DocumentOpenError, EditorDocument
from editlink.editor.workspace import WorkspacePathError
from editlink.logger import logger
from editlink.patch.locator import detect_eol
from editlink.patch.models import TextRange
from editlink.patch.parser import has_open_block, parse_diff_blocks
from editlink.proto import (
    EditorCommandKind,
    EditorCommandPacket,
    ProtocolError,
    decode_packet,
)
from editlink.session import EditorSession
from editlink.stream import StreamJob


class RouterState(str, Enum):
    IDLE = "idle"
    DISPATCHED = "dispatched"


CommandHandler = Callable[[EditorCommandPacket], Awaitable[None]]


async def _save(document: EditorDocument) -> bool:
    try:
        return await document.save()
    except OSError as e:
        logger.warning("Save failed", path=document.path, error=str(e))
        return False


class CommandRouter:
    """
    Decodes inbound frames and dispatches editor commands one at a time.
    Handler failures are reported to the user and never reach the transport.
    """

    def __init__(self, session: EditorSession) -> None:
        self._session = session
        self._state = RouterState.IDLE
        self._drain_task: Optional["asyncio.Task[int]"] = None
        self._handlers: Dict[EditorCommandKind, CommandHandler] = {
            EditorCommandKind.WRITE_FILE: self._on_write_file,
            EditorCommandKind.APPLY_PATCH: self._on_apply_patch,
        }
        session.queue.on_finished = self._finish_write

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def session(self) -> EditorSession:
        return self._session

    async def handle_frame(self, data: Union[str, bytes]) -> None:
        try:
            packet = decode_packet(data)
        except ProtocolError as e:
            logger.warning("Dropping malformed frame", error=str(e))
            return
        if not isinstance(packet, EditorCommandPacket):
            logger.debug("Ignoring frame", kind=getattr(packet, "type", None))
            return
        await self.handle_command(packet)

    async def handle_command(self, cmd: EditorCommandPacket) -> None:
        logger.info(
            "Editor command",
            command=cmd.command.value,
            nonce=cmd.nonce,
            path=cmd.target_path,
            mode=cmd.payload.mode.value if cmd.payload.mode else None,
        )
        superseded = self._session.ack.arm(cmd.nonce)
        if superseded is not None and superseded != cmd.nonce:
            logger.info("Unacknowledged command superseded", nonce=superseded)

        # Any streaming write still in progress loses to the new command
        self._session.reset()
        self._drain_task = None

        self._state = RouterState.DISPATCHED
        try:
            await self._handlers[cmd.command](cmd)
        except Exception as e:
            logger.exception(
                "Error handling command",
                command=cmd.command.value,
                nonce=cmd.nonce,
                exc=e,
            )
            self._session.surface.show_error(f"Agent Error: {e}")
        finally:
            self._state = RouterState.IDLE

    async def join(self) -> None:
        """Wait for the streaming write started by the last WRITE_FILE, if any."""
        task = self._drain_task
        if task is not None:
            await task

    async def _on_write_file(self, cmd: EditorCommandPacket) -> None:
        surface = self._session.surface
        document = await surface.open_document(cmd.target_path, create=True)
        queue = self._session.queue
        text = document.get_text()
        queue.reset(path=document.path, nonce=cmd.nonce, eol=detect_eol(text))

        if text and not await document.delete(TextRange(0, len(text))):
            surface.show_error(f"Could not clear {document.path}")
            return

        count = queue.enqueue_lines(cmd.content)
        logger.debug("Write queued", path=document.path, lines=count)
        self._drain_task = queue.drain(document)

    async def _finish_write(self, job: StreamJob, document: EditorDocument) -> None:
        surface = self._session.surface
        try:
            if not await _save(document):
                surface.show_warning(
                    f"Edit completed but auto-save failed for {document.path}. "
                    "Please save manually."
                )
                return
            self._session.status(f"Edit saved: {document.path}")
            await self._session.acknowledge(job.nonce)
        except Exception as e:
            logger.exception("Finishing write failed", path=document.path, exc=e)
            surface.show_error(f"Agent Error: {e}")

    async def _on_apply_patch(self, cmd: EditorCommandPacket) -> None:
        surface = self._session.surface
        try:
            document = await surface.open_document(cmd.target_path)
        except (DocumentOpenError, WorkspacePathError) as e:
            logger.warning("Could not open target for patch", path=cmd.target_path, error=str(e))
            surface.show_error(str(e))
            return

        blocks = parse_diff_blocks(cmd.diff_text)
        if has_open_block(cmd.diff_text):
            logger.warning("Diff ends inside an unterminated block", path=document.path)
        if not blocks:
            surface.show_warning("Received patch command but found no valid blocks.")
            return

        report = await self._session.applier.apply_all(document, blocks)
        logger.info(
            "Patch applied",
            path=document.path,
            blocks=report.total,
            applied=report.applied,
            missed=report.missed,
        )

        if not await _save(document):
            self._session.status(f"Patch applied (unsaved): {document.path}")
            surface.show_warning(
                f"Patch applied to {document.path} but it could not be saved."
            )
            return
        self._session.status(f"Patch applied & saved: {document.path}")
        await self._session.acknowledge(cmd.nonce)
