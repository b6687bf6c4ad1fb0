"""Integration tests for PriceFeed."""

import asyncio

import pytest

from stockstream.market.cache import PriceCache
from stockstream.market.instruments import SUPPORTED_STOCKS
from stockstream.market.simulator import PriceFeed, RandomWalkSimulator


@pytest.mark.asyncio
class TestPriceFeed:
    """Integration tests for the tick loop."""

    async def test_start_seeds_cache(self):
        """Readers see opening prices before the first tick."""
        cache = PriceCache()
        feed = PriceFeed(cache, update_interval=60.0)
        await feed.start()

        prices = cache.snapshot(SUPPORTED_STOCKS)
        assert set(prices) == set(SUPPORTED_STOCKS)
        for point in prices.values():
            assert point.change == 0.0

        await feed.stop()

    async def test_tick_updates_cache_and_returns_points(self):
        """A tick writes every symbol to the cache and returns the new points."""
        cache = PriceCache()
        feed = PriceFeed(cache, simulator=RandomWalkSimulator(seed=1))
        feed.seed_cache()

        points = await feed.tick()

        assert set(points) == set(SUPPORTED_STOCKS)
        assert cache.snapshot(["TSLA"]) == {"TSLA": points["TSLA"]}
        assert feed.ticks == 1

    async def test_change_follows_previous_price(self):
        """Each point's change is measured against the prior tick's price."""
        cache = PriceCache()
        feed = PriceFeed(cache, simulator=RandomWalkSimulator(seed=2))
        feed.seed_cache()
        before = cache.snapshot(["GOOG"])["GOOG"].price

        point = (await feed.tick())["GOOG"]

        assert point.previous_price == before
        assert point.change == round(point.price - before, 2)

    async def test_listeners_receive_each_tick(self):
        """Every listener gets the PricePoints of every tick."""
        cache = PriceCache()
        feed = PriceFeed(cache)
        received = []

        async def listener(points):
            received.append(points)

        feed.add_listener(listener)
        await feed.tick()
        await feed.tick()

        assert len(received) == 2
        assert set(received[0]) == set(SUPPORTED_STOCKS)

    async def test_failing_listener_does_not_block_others(self):
        """A listener that raises is logged and the next one still runs."""
        cache = PriceCache()
        feed = PriceFeed(cache)
        received = []

        async def broken(points):
            raise RuntimeError("boom")

        async def listener(points):
            received.append(points)

        feed.add_listener(broken)
        feed.add_listener(listener)
        await feed.tick()

        assert len(received) == 1

    async def test_loop_ticks_on_interval(self):
        """The background loop keeps ticking until stopped."""
        cache = PriceCache()
        feed = PriceFeed(cache, update_interval=0.02)
        await feed.start()

        await asyncio.sleep(0.2)

        assert feed.ticks > 1
        await feed.stop()

    async def test_stop_is_clean_and_idempotent(self):
        """stop() halts the loop and can be called twice."""
        feed = PriceFeed(PriceCache(), update_interval=0.02)
        await feed.start()
        await feed.stop()
        ticks = feed.ticks

        await asyncio.sleep(0.1)
        assert feed.ticks == ticks
        await feed.stop()
