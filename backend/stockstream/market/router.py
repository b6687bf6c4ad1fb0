"""Read-only market endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from .cache import PriceCache
from .instruments import SUPPORTED_STOCKS


def create_market_router(price_cache: PriceCache) -> APIRouter:
    """Router exposing the instrument universe and current prices."""
    router = APIRouter(prefix="/api", tags=["market"])

    @router.get("/stocks")
    async def list_stocks() -> dict:
        prices = price_cache.snapshot(SUPPORTED_STOCKS)
        return {
            "stocks": list(SUPPORTED_STOCKS),
            "prices": {symbol: point.to_dict() for symbol, point in prices.items()},
        }

    return router
