"""Data models for market data."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class PricePoint:
    """Immutable snapshot of one symbol's price at a single tick."""

    symbol: str
    price: float
    previous_price: float
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @property
    def change(self) -> float:
        """Absolute price change from the previous tick."""
        return round(self.price - self.previous_price, 2)

    @property
    def change_percent(self) -> float:
        """Change as a percentage of the previous price."""
        if self.previous_price == 0:
            return 0.0
        return round((self.price - self.previous_price) / self.previous_price * 100, 2)

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat'."""
        if self.price > self.previous_price:
            return "up"
        elif self.price < self.previous_price:
            return "down"
        return "flat"

    def to_dict(self) -> dict:
        """Serialize for the JSON wire format (camelCase keys)."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "previousPrice": self.previous_price,
            "change": self.change,
            "changePercent": self.change_percent,
            "direction": self.direction,
            "timestamp": self.timestamp,
        }
