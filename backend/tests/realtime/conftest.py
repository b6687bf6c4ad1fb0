"""Fakes for realtime tests."""

import asyncio
import json

import pytest
from fastapi.websockets import WebSocketState


class FakeConnection:
    """Stands in for ClientConnection: records decoded messages."""

    def __init__(self, open: bool = True) -> None:
        self.open = open
        self.user_id = None
        self.messages: list[dict] = []
        self.closed_with: int | None = None

    def send(self, text: str) -> bool:
        if not self.open:
            return False
        self.messages.append(json.loads(text))
        return True

    def close(self, code: int = 1000) -> None:
        self.open = False
        self.closed_with = code

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]


class FakeWebSocket:
    """Minimal WebSocket double for ClientConnection."""

    def __init__(self, fail: bool = False, blocked: bool = False) -> None:
        self.sent: list[str] = []
        self.closed_with: int | None = None
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self._fail = fail
        self._gate = asyncio.Event()
        if not blocked:
            self._gate.set()

    def unblock(self) -> None:
        self._gate.set()

    async def send_text(self, text: str) -> None:
        if self._fail:
            raise RuntimeError("socket gone")
        await self._gate.wait()
        self.sent.append(text)

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code
        self.application_state = WebSocketState.DISCONNECTED


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def make_websocket():
    return FakeWebSocket
