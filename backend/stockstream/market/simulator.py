"""Random-walk price simulator and the periodic feed that drives it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

import numpy as np

from .cache import PriceCache
from .instruments import MAX_TICK_MOVE, MIN_PRICE, SEED_PRICE_RANGE, SUPPORTED_STOCKS
from .models import PricePoint

logger = logging.getLogger(__name__)

TickListener = Callable[[dict[str, PricePoint]], Awaitable[None]]


class RandomWalkSimulator:
    """Bounded multiplicative random walk over a fixed set of symbols.

    Each step draws one uniform move per symbol from [-max_move, +max_move]:

        S(t+1) = max(S(t) * (1 + U), min_price)

    Opening prices come from a uniform draw over ``seed_range``.
    """

    def __init__(
        self,
        symbols: Sequence[str] = SUPPORTED_STOCKS,
        max_move: float = MAX_TICK_MOVE,
        seed_range: tuple[float, float] = SEED_PRICE_RANGE,
        min_price: float = MIN_PRICE,
        seed: int | None = None,
    ) -> None:
        self._symbols: list[str] = list(dict.fromkeys(symbols))
        self._max_move = max_move
        self._min_price = min_price
        self._rng = np.random.default_rng(seed)

        low, high = seed_range
        opening = self._rng.uniform(low, high, len(self._symbols))
        self._prices: dict[str, float] = {
            symbol: max(round(float(p), 2), min_price)
            for symbol, p in zip(self._symbols, opening)
        }

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    def step(self) -> dict[str, float]:
        """Advance every symbol by one tick. Returns {symbol: new_price}."""
        if not self._symbols:
            return {}

        moves = self._rng.uniform(-self._max_move, self._max_move, len(self._symbols))

        result: dict[str, float] = {}
        for symbol, move in zip(self._symbols, moves):
            new_price = self._prices[symbol] * (1.0 + float(move))
            self._prices[symbol] = max(new_price, self._min_price)
            result[symbol] = max(round(self._prices[symbol], 2), self._min_price)
        return result

    def get_price(self, symbol: str) -> float | None:
        """Current price for a symbol, or None if not simulated."""
        price = self._prices.get(symbol)
        return None if price is None else max(round(price, 2), self._min_price)


class PriceFeed:
    """Drives the simulator on a fixed interval and publishes each tick.

    Every tick writes the new prices to the PriceCache and then awaits each
    registered listener with the tick's PricePoints. A failing listener is
    logged and does not affect the others or the loop.
    """

    def __init__(
        self,
        price_cache: PriceCache,
        simulator: RandomWalkSimulator | None = None,
        update_interval: float = 1.0,
    ) -> None:
        self._cache = price_cache
        self._sim = simulator or RandomWalkSimulator()
        self._interval = update_interval
        self._listeners: list[TickListener] = []
        self._task: asyncio.Task | None = None
        self._ticks = 0

    def add_listener(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    @property
    def ticks(self) -> int:
        """Number of completed ticks since start."""
        return self._ticks

    def seed_cache(self) -> None:
        """Write opening prices so readers have data before the first tick."""
        for symbol in self._sim.symbols:
            price = self._sim.get_price(symbol)
            if price is not None:
                self._cache.update(symbol=symbol, price=price)

    async def start(self) -> None:
        self.seed_cache()
        self._task = asyncio.create_task(self._run_loop(), name="price-feed")
        logger.info(
            "Price feed started: %d symbols, %.2fs interval",
            len(self._sim.symbols),
            self._interval,
        )

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Price feed stopped after %d ticks", self._ticks)

    async def tick(self) -> dict[str, PricePoint]:
        """Run one tick: step, cache, notify. Returns the new PricePoints."""
        prices = self._sim.step()
        points = {
            symbol: self._cache.update(symbol=symbol, price=price)
            for symbol, price in prices.items()
        }
        self._ticks += 1

        for listener in self._listeners:
            try:
                await listener(points)
            except Exception:
                logger.exception("Tick listener %r failed", listener)
        return points

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("Price feed tick failed")
