"""Tests for ClientConnection."""

import asyncio

import pytest
from fastapi.websockets import WebSocketState

from stockstream.realtime.connection import POLICY_VIOLATION, TRY_AGAIN_LATER, ClientConnection


@pytest.mark.asyncio
class TestClientConnection:
    """Queueing, slow-consumer drops and close behaviour."""

    async def test_send_before_start_fails(self, make_websocket):
        """A connection whose writer has not started refuses messages."""
        conn = ClientConnection(make_websocket())
        assert conn.send("hello") is False

    async def test_messages_delivered_in_order(self, make_websocket):
        """Queued messages reach the socket in send order."""
        ws = make_websocket()
        conn = ClientConnection(ws)
        conn.start()

        assert conn.send("one")
        assert conn.send_message({"type": "TWO"})
        conn.close()
        await conn.wait_closed()

        assert ws.sent == ["one", '{"type": "TWO"}']
        assert ws.closed_with == 1000

    async def test_close_flushes_then_closes_with_code(self, make_websocket):
        """Close drains queued messages, then closes with the given code."""
        ws = make_websocket()
        conn = ClientConnection(ws)
        conn.start()

        conn.send_message({"type": "AUTH_FAILED", "error": "Invalid session"})
        conn.close(code=POLICY_VIOLATION)
        assert conn.send("late") is False
        await conn.wait_closed()

        assert ws.sent == ['{"type": "AUTH_FAILED", "error": "Invalid session"}']
        assert ws.closed_with == POLICY_VIOLATION

    async def test_slow_consumer_is_dropped(self, make_websocket):
        """A full queue drops the connection with TRY_AGAIN_LATER."""
        ws = make_websocket(blocked=True)
        conn = ClientConnection(ws, queue_size=2)
        conn.start()
        await asyncio.sleep(0)

        results = [conn.send(f"m{i}") for i in range(5)]
        assert False in results
        assert not conn.is_open

        ws.unblock()
        await conn.wait_closed()
        assert ws.closed_with == TRY_AGAIN_LATER

    async def test_send_failure_closes_connection(self, make_websocket):
        """A socket error ends the connection."""
        ws = make_websocket(fail=True)
        conn = ClientConnection(ws)
        conn.start()

        assert conn.send("boom")
        await conn.wait_closed()

        assert not conn.is_open
        assert conn.send("again") is False

    async def test_close_is_idempotent(self, make_websocket):
        """Repeated close and wait_closed calls are harmless."""
        conn = ClientConnection(make_websocket())
        conn.start()
        conn.close()
        conn.close()
        await conn.wait_closed()
        await conn.wait_closed()

    async def test_already_disconnected_socket_not_closed_again(self, make_websocket):
        """A socket the client already closed is not closed a second time."""
        ws = make_websocket()
        ws.client_state = WebSocketState.DISCONNECTED
        conn = ClientConnection(ws)
        conn.start()
        conn.close()
        await conn.wait_closed()
        assert ws.closed_with is None
