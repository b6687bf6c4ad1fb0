"""Push-channel message types and builders.

Client -> server:
    {"type": "AUTH", "sessionId": ...}

Server -> client:
    {"type": "AUTH_SUCCESS", "userId": ...}
    {"type": "AUTH_FAILED", "error": ...}
    {"type": "INITIAL_PRICES", "data": {symbol: PricePoint}}
    {"type": "PRICE_UPDATE", "data": {symbol: PricePoint}, "timestamp": iso8601}
    {"type": "SUBSCRIPTION_UPDATE", "subscriptions": [symbol, ...]}
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from ..market.models import PricePoint

AUTH = "AUTH"
AUTH_SUCCESS = "AUTH_SUCCESS"
AUTH_FAILED = "AUTH_FAILED"
INITIAL_PRICES = "INITIAL_PRICES"
PRICE_UPDATE = "PRICE_UPDATE"
SUBSCRIPTION_UPDATE = "SUBSCRIPTION_UPDATE"


def encode(message: Mapping) -> str:
    return json.dumps(message)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def auth_success(user_id: str) -> dict:
    return {"type": AUTH_SUCCESS, "userId": user_id}


def auth_failed(error: str) -> dict:
    return {"type": AUTH_FAILED, "error": error}


def initial_prices(prices: Mapping[str, PricePoint]) -> dict:
    return {
        "type": INITIAL_PRICES,
        "data": {symbol: point.to_dict() for symbol, point in prices.items()},
    }


def price_update(prices: Mapping[str, PricePoint], timestamp: str | None = None) -> dict:
    return {
        "type": PRICE_UPDATE,
        "data": {symbol: point.to_dict() for symbol, point in prices.items()},
        "timestamp": timestamp or utc_timestamp(),
    }


def subscription_update(subscriptions: Iterable[str]) -> dict:
    return {"type": SUBSCRIPTION_UPDATE, "subscriptions": list(subscriptions)}
