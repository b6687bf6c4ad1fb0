"""Live push channels grouped by user."""

from __future__ import annotations

import logging
from threading import Lock

from .connection import ClientConnection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Maps user ids to their open, authenticated connections.

    A connection is registered under at most one user; attaching it again
    moves it. Channels that have not authenticated yet are tracked apart from
    the user map (see ``track``) so shutdown can reach every open socket.
    Readers get tuples copied under the lock, so a broadcast pass
    works on a point-in-time view while attach/detach carry on.
    """

    def __init__(self) -> None:
        self._by_user: dict[str, set[ClientConnection]] = {}
        self._owner: dict[ClientConnection, str] = {}
        self._pending: set[ClientConnection] = set()
        self._lock = Lock()

    def track(self, connection: ClientConnection) -> None:
        """Record an open channel that has not authenticated yet."""
        with self._lock:
            if connection not in self._owner:
                self._pending.add(connection)

    def attach(self, user_id: str, connection: ClientConnection) -> None:
        with self._lock:
            self._pending.discard(connection)
            previous = self._owner.get(connection)
            if previous is not None and previous != user_id:
                self._discard(previous, connection)
            self._owner[connection] = user_id
            self._by_user.setdefault(user_id, set()).add(connection)
            count = len(self._by_user[user_id])
        logger.info("Attached %r (%d connections for user)", connection, count)

    def detach(self, connection: ClientConnection) -> bool:
        """Forget ``connection``. Returns False if it was not attached to a user."""
        with self._lock:
            self._pending.discard(connection)
            user_id = self._owner.pop(connection, None)
            if user_id is None:
                return False
            self._discard(user_id, connection)
        logger.info("Detached %r", connection)
        return True

    def connections_for(self, user_id: str) -> tuple[ClientConnection, ...]:
        with self._lock:
            return tuple(self._by_user.get(user_id, ()))

    def snapshot(self) -> dict[str, tuple[ClientConnection, ...]]:
        """Every user with at least one connection, and those connections."""
        with self._lock:
            return {user_id: tuple(conns) for user_id, conns in self._by_user.items()}

    def all_connections(self) -> list[ClientConnection]:
        """Every open channel, authenticated or not."""
        with self._lock:
            return [*self._owner, *self._pending]

    def close_all(self, code: int) -> int:
        """Close every open channel with ``code``. Returns how many were closed."""
        connections = self.all_connections()
        for connection in connections:
            connection.close(code=code)
        if connections:
            logger.info("Closing %d push channels", len(connections))
        return len(connections)

    def _discard(self, user_id: str, connection: ClientConnection) -> None:
        conns = self._by_user.get(user_id)
        if conns is None:
            return
        conns.discard(connection)
        if not conns:
            del self._by_user[user_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._owner)

    def __contains__(self, connection: object) -> bool:
        with self._lock:
            return connection in self._owner
