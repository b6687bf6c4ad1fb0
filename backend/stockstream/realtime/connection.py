"""A single push channel with a bounded, non-blocking outbound queue."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Mapping

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from .messages import encode

logger = logging.getLogger(__name__)

_CLOSE = object()
_ids = itertools.count(1)

# WebSocket close codes
NORMAL_CLOSURE = 1000
GOING_AWAY = 1001
POLICY_VIOLATION = 1008
TRY_AGAIN_LATER = 1013


class ClientConnection:
    """Wraps a WebSocket so producers never await a client.

    ``send()`` only enqueues; a writer task drains the queue to the socket.
    A full queue means the client is too slow: the connection is closed and
    ``send()`` reports failure so the caller can detach it. Once closing,
    nothing new is accepted, and close() flushes what is already queued
    before the socket is closed.
    """

    def __init__(self, websocket: WebSocket, queue_size: int = 64) -> None:
        self.id = next(_ids)
        self.user_id: str | None = None
        self._websocket = websocket
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task | None = None
        self._closing = False
        self._close_code = NORMAL_CLOSURE

    def __repr__(self) -> str:
        return f"<ClientConnection #{self.id} user={self.user_id}>"

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_open(self) -> bool:
        return not self._closing and self._writer is not None and not self._writer.done()

    def start(self) -> None:
        self._writer = asyncio.create_task(self._pump(), name=f"ws-writer-{self.id}")

    def send(self, text: str) -> bool:
        """Queue ``text`` without blocking. False if the connection is unusable."""
        if not self.is_open:
            return False
        try:
            self._queue.put_nowait(text)
        except asyncio.QueueFull:
            logger.warning("Dropping slow consumer %r (%d queued)", self, self._queue.qsize())
            self.close(code=TRY_AGAIN_LATER)
            return False
        return True

    def send_message(self, message: Mapping) -> bool:
        return self.send(encode(message))

    def close(self, code: int = NORMAL_CLOSURE) -> None:
        """Stop accepting messages and close once the queue drains. Idempotent."""
        if self._closing:
            return
        self._closing = True
        self._close_code = code
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # Slow consumer: skip the backlog
            if self._writer is not None:
                self._writer.cancel()

    async def wait_closed(self) -> None:
        if self._writer is None:
            return
        try:
            await self._writer
        except asyncio.CancelledError:
            pass

    async def _pump(self) -> None:
        try:
            while True:
                item = await self._queue.get()
                if item is _CLOSE:
                    break
                await self._websocket.send_text(item)
        except asyncio.CancelledError:
            pass
        except Exception as exc:
            logger.debug("Send to %r failed: %s", self, exc)
        finally:
            self._closing = True
            await self._close_socket()

    async def _close_socket(self) -> None:
        ws = self._websocket
        if (
            ws.application_state == WebSocketState.DISCONNECTED
            or ws.client_state == WebSocketState.DISCONNECTED
        ):
            return
        try:
            await ws.close(code=self._close_code)
        except Exception as exc:
            logger.debug("Close of %r failed: %s", self, exc)
