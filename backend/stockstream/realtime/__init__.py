"""Realtime subsystem: push channels, the connection registry and fan-out.

Public API:
    ClientConnection     - One WebSocket with a bounded outbound queue
    ConnectionRegistry   - user id -> live connections
    BroadcastEngine      - Per-user PRICE_UPDATE / SUBSCRIPTION_UPDATE fan-out
    PushChannelHandler   - AUTH protocol for new channels
    create_stream_router - FastAPI router for the /ws endpoint
"""

from .broadcast import BroadcastEngine
from .connection import ClientConnection
from .registry import ConnectionRegistry
from .stream import PushChannelHandler, create_stream_router

__all__ = [
    "BroadcastEngine",
    "ClientConnection",
    "ConnectionRegistry",
    "PushChannelHandler",
    "create_stream_router",
]
