"""Per-user fan-out of price ticks and subscription changes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from ..errors import UnknownUser
from ..market.instruments import in_display_order
from ..market.models import PricePoint
from ..users.directory import UserDirectory
from .messages import encode, price_update, subscription_update, utc_timestamp
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class BroadcastEngine:
    """Joins tick prices with subscriptions and live connections.

    Each user with a connection and a subscription gets one PRICE_UPDATE per
    tick holding only their symbols, encoded once and queued on every one of
    their connections. A connection that refuses the message (closed, or its
    queue is full) is detached and the pass continues.
    """

    def __init__(self, registry: ConnectionRegistry, directory: UserDirectory) -> None:
        self._registry = registry
        self._directory = directory

    async def on_tick(self, points: dict[str, PricePoint]) -> None:
        """PriceFeed listener."""
        self.broadcast_prices(points)

    def broadcast_prices(self, points: Mapping[str, PricePoint]) -> int:
        """Push ``points`` to subscribed users. Returns messages queued."""
        timestamp = utc_timestamp()
        sent = dropped = users = 0

        for user_id, connections in self._registry.snapshot().items():
            try:
                subscriptions = self._directory.subscriptions_of(user_id)
            except UnknownUser:
                logger.warning("Connected user %s missing from directory", user_id)
                continue
            if not subscriptions:
                continue

            data = {s: points[s] for s in in_display_order(subscriptions) if s in points}
            if not data:
                continue

            users += 1
            ok, failed = self._deliver(connections, encode(price_update(data, timestamp)))
            sent += ok
            dropped += failed

        logger.debug("Tick fan-out: %d users, %d sent, %d dropped", users, sent, dropped)
        return sent

    def notify_subscriptions(self, user_id: str, subscriptions: Iterable[str]) -> int:
        """Push a SUBSCRIPTION_UPDATE to every connection of ``user_id``.

        Registered as a UserDirectory listener, so it runs right after each
        successful subscribe/unsubscribe rather than on the next tick.
        """
        connections = self._registry.connections_for(user_id)
        if not connections:
            return 0
        message = subscription_update(in_display_order(frozenset(subscriptions)))
        sent, _ = self._deliver(connections, encode(message))
        return sent

    def _deliver(self, connections: Iterable, text: str) -> tuple[int, int]:
        sent = failed = 0
        for connection in connections:
            if connection.send(text):
                sent += 1
            else:
                self._registry.detach(connection)
                failed += 1
        return sent, failed
