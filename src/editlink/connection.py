from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

import aiohttp
from pydantic import BaseModel

from editlink.editor.base import EditorSurface
from editlink.editor.effects import DelayFn
from editlink.logger import logger
from editlink.proto import encode_packet
from editlink.router import CommandRouter
from editlink.session import EditorSession
from editlink.settings.models import Settings


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    STOPPED = "stopped"


class ConnectionManager:
    """
    Keeps one websocket session to the agent open, feeding every inbound
    frame to the router. Lost connections are retried after a fixed delay;
    commands that were in flight are abandoned.
    """

    def __init__(
        self,
        surface: EditorSurface,
        settings: Optional[Settings] = None,
        delay: DelayFn = asyncio.sleep,
    ) -> None:
        self._settings = settings or Settings()
        self._surface = surface
        self._url = self._settings.connection.resolve_url()
        self.session = EditorSession(
            surface, self._settings, sender=self.send_packet, delay=delay
        )
        self.router = CommandRouter(self.session)
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._state = ConnectionState.DISCONNECTED
        self._stopping = False
        self._skip_backoff = False
        self._wakeup = asyncio.Event()
        self.connected = asyncio.Event()
        self.attempts = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def send_packet(self, packet: BaseModel) -> bool:
        ws = self._ws
        if ws is None or ws.closed:
            return False
        try:
            await ws.send_str(encode_packet(packet))
        except (ConnectionError, aiohttp.ClientError) as e:
            logger.warning("Send failed", url=self._url, error=str(e))
            return False
        return True

    def start(self) -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            return self._task
        self._stopping = False
        self._task = asyncio.create_task(self._run())
        return self._task

    async def reconnect(self) -> None:
        """Drop the current socket (if any) and connect again without waiting."""
        logger.info("Reconnect requested", url=self._url)
        self._skip_backoff = True
        self._wakeup.set()
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()
        self.start()

    async def stop(self) -> None:
        self._stopping = True
        self._wakeup.set()
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self.session.reset()
        self._state = ConnectionState.STOPPED

    async def _run(self) -> None:
        async with aiohttp.ClientSession() as http:
            while not self._stopping:
                try:
                    await self._connect_once(http)
                except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                    logger.warning("WS Error", url=self._url, error=str(e))
                finally:
                    self._abandon_inflight()
                if self._stopping:
                    break
                await self._backoff()
        self._state = ConnectionState.STOPPED

    async def _connect_once(self, http: aiohttp.ClientSession) -> None:
        self.attempts += 1
        self._state = ConnectionState.CONNECTING
        logger.info("Connecting", url=self._url, attempt=self.attempts)
        async with http.ws_connect(
            self._url, heartbeat=self._settings.connection.heartbeat_s
        ) as ws:
            self._ws = ws
            self._state = ConnectionState.CONNECTED
            self.connected.set()
            self._surface.set_status("Agent connected", 5.0)
            try:
                async for msg in ws:
                    if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                        await self.router.handle_frame(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.warning("WS Error", url=self._url, error=str(ws.exception()))
                        break
            finally:
                self._ws = None
                self.connected.clear()
                self._state = ConnectionState.DISCONNECTED
            logger.info("WS Closed", url=self._url, code=ws.close_code)

    def _abandon_inflight(self) -> None:
        self.session.reset()
        self.session.ack.arm(None)

    async def _backoff(self) -> None:
        if self._skip_backoff:
            self._skip_backoff = False
            return
        self._wakeup.clear()
        try:
            await asyncio.wait_for(
                self._wakeup.wait(), timeout=self._settings.connection.reconnect_delay_s
            )
        except asyncio.TimeoutError:
            pass
        self._skip_backoff = False
