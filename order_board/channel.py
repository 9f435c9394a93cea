"""Process-wide push channel to the order backend.

Frames are JSON text messages shaped ``{"event": name, "data": payload}``.
Subscribers register named handlers with ``on``/``off``; the connection
lifecycle (connect, reconnect, disconnect) stays inside this module.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

import websockets
from websockets.exceptions import WebSocketException

from order_board.config import SOCKET_URL, STAFF_ROOM
from order_board.constant import (
    EVENT_CONNECTED,
    EVENT_DISCONNECTED,
    EVENT_JOIN_ROOM,
    SOCKET_CONNECT_TIMEOUT_S,
    SOCKET_MAX_RECONNECT_ATTEMPTS,
    SOCKET_RECONNECT_DELAY_S,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class LiveUpdateChannel:
    """One websocket connection shared by every board on this process."""

    def __init__(
        self,
        url: str = SOCKET_URL,
        room: str | None = STAFF_ROOM,
        connect_factory: Callable[[str], Any] | None = None,
        max_reconnect_attempts: int = SOCKET_MAX_RECONNECT_ATTEMPTS,
        reconnect_delay: float = SOCKET_RECONNECT_DELAY_S,
    ) -> None:
        self.url = url
        self.room = room
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self.reconnect_attempts = 0
        self._connect_factory = connect_factory or websockets.connect
        self._handlers: dict[str, list[Handler]] = {}
        self._ws: Any = None
        self._task: asyncio.Task[None] | None = None
        self._connected = asyncio.Event()
        self._closing = False
        self._pending_sends: set[asyncio.Task[None]] = set()

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    def on(self, event: str, handler: Handler) -> None:
        """Register ``handler`` for ``event``. Registering it twice is a no-op."""
        handlers = self._handlers.setdefault(event, [])
        if handler in handlers:
            logger.debug("handler %r already registered for %s", handler, event)
            return
        handlers.append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event]

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def dispatch(self, event: str, data: Any) -> None:
        """Deliver ``data`` to every handler of ``event``; one failing handler does not stop the rest."""
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(data)
            except Exception:
                logger.exception("error in %s handler %r", event, handler)

    def emit(self, event: str, data: Any) -> bool:
        """Send an event to the server without waiting.

        Returns False and does nothing when the channel is not connected.
        """
        ws = self._ws
        if ws is None:
            logger.debug("emit %s skipped, channel not connected", event)
            return False
        task = asyncio.get_running_loop().create_task(self._send(ws, event, data))
        self._pending_sends.add(task)
        task.add_done_callback(self._pending_sends.discard)
        return True

    async def connect(self, timeout: float = SOCKET_CONNECT_TIMEOUT_S) -> bool:
        """Start the connection loop and wait up to ``timeout`` for the first connect."""
        if self._task is None or self._task.done():
            self._closing = False
            self.reconnect_attempts = 0
            self._task = asyncio.get_running_loop().create_task(self._run())
        try:
            await asyncio.wait_for(self._connected.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("push channel not connected after %.1fs, continuing without it", timeout)
            return False
        return True

    async def disconnect(self) -> None:
        self._closing = True
        ws = self._ws
        if ws is not None:
            try:
                await ws.close()
            except WebSocketException as exc:
                logger.debug("error while closing push channel: %s", exc)
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._ws = None
        self._connected.clear()

    async def _run(self) -> None:
        while not self._closing:
            try:
                async with self._connect_factory(self.url) as ws:
                    self._ws = ws
                    self.reconnect_attempts = 0
                    self._connected.set()
                    logger.info("push channel connected to %s", self.url)
                    if self.room:
                        await self._send(ws, EVENT_JOIN_ROOM, {"roomName": self.room, "roomType": "staff"})
                    self.dispatch(EVENT_CONNECTED, {"url": self.url})
                    async for raw in ws:
                        self._handle_frame(raw)
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                logger.warning("push channel error: %s", exc)
            finally:
                was_connected = self._ws is not None
                self._ws = None
                self._connected.clear()
                if was_connected:
                    logger.info("push channel disconnected")
                    self.dispatch(EVENT_DISCONNECTED, None)

            if self._closing:
                break
            self.reconnect_attempts += 1
            if self.reconnect_attempts > self.max_reconnect_attempts:
                logger.error("push channel giving up after %d reconnect attempts", self.max_reconnect_attempts)
                break
            await asyncio.sleep(self.reconnect_delay)

    def _handle_frame(self, raw: str | bytes) -> None:
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("ignoring non-JSON frame: %r", raw[:200])
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            logger.warning("ignoring frame without an event name: %r", frame)
            return
        self.dispatch(frame["event"], frame.get("data"))

    async def _send(self, ws: Any, event: str, data: Any) -> None:
        try:
            await ws.send(json.dumps({"event": event, "data": data}))
        except (OSError, WebSocketException) as exc:
            logger.warning("send %s failed: %s", event, exc)


live_channel = LiveUpdateChannel()
