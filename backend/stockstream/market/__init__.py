"""Market data subsystem.

Public API:
    PricePoint          - Immutable per-tick price snapshot
    PriceCache          - Thread-safe latest-price store
    RandomWalkSimulator - Bounded random walk over the instrument universe
    PriceFeed           - asyncio tick loop feeding the cache and listeners
    SUPPORTED_STOCKS    - The fixed instrument universe
    create_market_router - FastAPI router for GET /api/stocks
"""

from .cache import PriceCache
from .instruments import SUPPORTED_STOCKS, in_display_order, is_supported
from .models import PricePoint
from .router import create_market_router
from .simulator import PriceFeed, RandomWalkSimulator

__all__ = [
    "PricePoint",
    "PriceCache",
    "PriceFeed",
    "RandomWalkSimulator",
    "SUPPORTED_STOCKS",
    "create_market_router",
    "in_display_order",
    "is_supported",
]
