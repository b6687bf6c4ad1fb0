"""Thread-safe in-memory price cache."""

from __future__ import annotations

import time
from collections.abc import Iterable
from threading import Lock

from .models import PricePoint


class PriceCache:
    """Latest PricePoint per symbol. No history is kept.

    Writer: PriceFeed, once per symbol per tick.
    Readers: channel authentication and ``GET /api/stocks``, through
    ``snapshot()``.
    """

    def __init__(self) -> None:
        self._prices: dict[str, PricePoint] = {}
        self._lock = Lock()

    def update(self, symbol: str, price: float, timestamp: float | None = None) -> PricePoint:
        """Record a new price and return the PricePoint derived from the previous one.

        The first price recorded for a symbol is its own previous price, so
        its change is zero.
        """
        with self._lock:
            prev = self._prices.get(symbol)
            point = PricePoint(
                symbol=symbol,
                price=round(price, 2),
                previous_price=prev.price if prev else round(price, 2),
                timestamp=timestamp or time.time(),
            )
            self._prices[symbol] = point
        return point

    def snapshot(self, symbols: Iterable[str]) -> dict[str, PricePoint]:
        """Current prices for ``symbols``, skipping any not yet priced."""
        with self._lock:
            return {s: self._prices[s] for s in symbols if s in self._prices}
