"""WebSocket push channel: authentication and the receive loop."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket

from ..market.cache import PriceCache
from ..market.instruments import in_display_order
from ..users.directory import UserDirectory
from ..users.sessions import SessionStore
from . import messages
from .connection import POLICY_VIOLATION, ClientConnection
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class PushChannelHandler:
    """Handles inbound messages on a push channel.

    A channel starts unauthenticated and only an AUTH message means anything
    until it succeeds. On success the connection is attached to its user and
    gets INITIAL_PRICES for its subscriptions (when it has any), then the
    AUTH_SUCCESS acknowledgment. On failure it gets AUTH_FAILED and is
    closed; the client has to reconnect.
    Anything else, including repeated AUTH after success, is ignored.
    """

    def __init__(
        self,
        sessions: SessionStore,
        directory: UserDirectory,
        registry: ConnectionRegistry,
        price_cache: PriceCache,
    ) -> None:
        self._sessions = sessions
        self._directory = directory
        self._registry = registry
        self._cache = price_cache

    def handle_message(self, connection: ClientConnection, raw: str) -> None:
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON message on %r", connection)
            return
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object message on %r", connection)
            return

        if connection.authenticated or message.get("type") != messages.AUTH:
            logger.debug("Ignoring %r message on %r", message.get("type"), connection)
            return

        self.authenticate(connection, message.get("sessionId"))

    def authenticate(self, connection: ClientConnection, session_id: object) -> bool:
        user_id = self._sessions.resolve(session_id)
        if user_id is None or user_id not in self._directory:
            logger.info("Push channel auth failed on %r", connection)
            connection.send_message(messages.auth_failed("Invalid session"))
            connection.close(code=POLICY_VIOLATION)
            return False

        connection.user_id = user_id
        self._registry.attach(user_id, connection)

        subscriptions = self._directory.subscriptions_of(user_id)
        if subscriptions:
            prices = self._cache.snapshot(in_display_order(subscriptions))
            connection.send_message(messages.initial_prices(prices))
        connection.send_message(messages.auth_success(user_id))
        return True


def create_stream_router(
    handler: PushChannelHandler,
    registry: ConnectionRegistry,
    queue_size: int = 64,
) -> APIRouter:
    """Router exposing the ``/ws`` push channel."""
    router = APIRouter(tags=["streaming"])

    @router.websocket("/ws")
    async def push_channel(websocket: WebSocket) -> None:
        connection = ClientConnection(websocket, queue_size=queue_size)
        registry.track(connection)
        try:
            await websocket.accept()
            connection.start()
            client = websocket.client.host if websocket.client else "unknown"
            logger.info("Push channel opened: %r from %s", connection, client)

            while connection.is_open:
                event = await websocket.receive()
                if event["type"] == "websocket.disconnect":
                    break
                raw = event.get("text")
                if raw is None:
                    data = event.get("bytes") or b""
                    raw = data.decode("utf-8", errors="replace")
                try:
                    handler.handle_message(connection, raw)
                except Exception:
                    logger.exception("Error handling message on %r", connection)
        finally:
            registry.detach(connection)
            connection.close()
            await connection.wait_closed()
            logger.info("Push channel closed: %r", connection)

    return router
