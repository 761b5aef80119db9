from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from editlink.editor.base import EditorSurface
from editlink.editor.effects import DelayFn, HighlightScheduler
from editlink.logger import logger
from editlink.patch.applier import PatchApplier
from editlink.proto import ClientAckPacket
from editlink.settings.models import Settings
from editlink.stream import WriteStreamQueue


# Returns True when the packet was handed to an open transport
AckSender = Callable[[ClientAckPacket], Awaitable[bool]]


class AckToken:
    """
    The nonce of the command currently awaiting acknowledgment. Arming a new
    nonce replaces the previous one; the replaced request never gets an ack.
    """

    def __init__(self) -> None:
        self._nonce: Optional[str] = None

    @property
    def current(self) -> Optional[str]:
        return self._nonce

    def arm(self, nonce: Optional[str]) -> Optional[str]:
        superseded = self._nonce
        self._nonce = nonce
        return superseded

    def take(self, nonce: Optional[str]) -> bool:
        if nonce is None or self._nonce != nonce:
            return False
        self._nonce = None
        return True

    def restore(self, nonce: str) -> None:
        if self._nonce is None:
            self._nonce = nonce


class EditorSession:
    """
    Per-connection state shared by the router, the applier and the stream
    queue. One session exists per connection handler; nothing here is global.
    """

    def __init__(
        self,
        surface: EditorSurface,
        settings: Optional[Settings] = None,
        sender: Optional[AckSender] = None,
        delay: DelayFn = asyncio.sleep,
    ) -> None:
        self.settings = settings or Settings()
        self.surface = surface
        self.sender = sender
        self.delay = delay
        self.ack = AckToken()
        self.effects = HighlightScheduler(surface, delay=delay)
        self.applier = PatchApplier(
            surface,
            self.effects,
            pacing=self.settings.pacing,
            on_miss=self.settings.patch.on_miss,
            delay=delay,
        )
        self.queue = WriteStreamQueue(surface, pacing=self.settings.pacing, delay=delay)

    def status(self, text: str) -> None:
        self.surface.set_status(text, self.settings.pacing.status_timeout_s)

    async def acknowledge(self, nonce: Optional[str]) -> bool:
        """Send CLIENT_ACK for nonce if it is still the current token. At most once per nonce."""
        if not self.ack.take(nonce):
            logger.debug("Ack skipped", nonce=nonce, current=self.ack.current)
            return False
        if self.sender is None:
            logger.warning("Ack not sent: no transport", nonce=nonce)
            self.ack.restore(nonce)
            return False

        sent = await self.sender(ClientAckPacket(nonce=nonce))
        if not sent:
            logger.warning("Ack not sent: transport closed", nonce=nonce)
            self.ack.restore(nonce)
            return False
        logger.info("Sent ACK", nonce=nonce)
        return True

    def reset(self) -> None:
        self.queue.reset()
        self.effects.cancel_all()
