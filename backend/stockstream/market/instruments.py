"""The fixed instrument universe and the simulator's price parameters."""

# Supported symbols, in display order. Membership never changes at runtime.
SUPPORTED_STOCKS: tuple[str, ...] = ("GOOG", "TSLA", "AMZN", "META", "NVDA")

SUPPORTED_SET: frozenset[str] = frozenset(SUPPORTED_STOCKS)

# Opening prices are drawn uniformly from this range so the dashboard
# doesn't start with every symbol at the same level.
SEED_PRICE_RANGE: tuple[float, float] = (50.0, 350.0)

# Largest per-tick move as a fraction of the previous price (+/- 1%)
MAX_TICK_MOVE = 0.01

# Floor applied after each move; prices are quoted to the cent
MIN_PRICE = 0.01


def is_supported(symbol: object) -> bool:
    """True if ``symbol`` is one of the supported stocks (exact match)."""
    return isinstance(symbol, str) and symbol in SUPPORTED_SET


def in_display_order(symbols: frozenset[str] | set[str]) -> list[str]:
    """Order a subscription set the way SUPPORTED_STOCKS lists symbols."""
    return [s for s in SUPPORTED_STOCKS if s in symbols]
