"""FastAPI application wiring and entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import StockStreamError
from .market import PriceCache, PriceFeed, create_market_router
from .realtime import BroadcastEngine, ConnectionRegistry, PushChannelHandler, create_stream_router
from .realtime.connection import GOING_AWAY
from .users import SessionStore, UserDataStore, UserDirectory, create_users_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the service with its stores injected into every router.

    Startup loads the user snapshot and starts the price feed; shutdown stops
    the feed, closes live channels and waits for pending snapshot writes.
    """
    settings = settings or Settings.from_env()

    price_cache = PriceCache()
    sessions = SessionStore()
    directory = UserDirectory()
    registry = ConnectionRegistry()
    data_store = UserDataStore(settings.data_file, directory)
    engine = BroadcastEngine(registry, directory)
    feed = PriceFeed(price_cache, update_interval=settings.tick_interval)
    handler = PushChannelHandler(sessions, directory, registry, price_cache)

    data_store.attach()
    directory.add_listener(engine.notify_subscriptions)
    feed.add_listener(engine.on_tick)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting StockStream...")
        data_store.load()
        await feed.start()
        try:
            yield
        finally:
            await feed.stop()
            registry.close_all(GOING_AWAY)
            await data_store.flush()
            logger.info("StockStream stopped")

    app = FastAPI(title="StockStream", lifespan=lifespan)
    app.state.settings = settings
    app.state.price_cache = price_cache
    app.state.sessions = sessions
    app.state.directory = directory
    app.state.registry = registry
    app.state.data_store = data_store
    app.state.feed = feed
    app.state.broadcast = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StockStreamError)
    async def service_error_handler(request: Request, exc: StockStreamError) -> JSONResponse:
        if exc.status_code >= 404:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Malformed request body"})

    @app.get("/api/health", tags=["health"])
    async def health() -> dict:
        return {
            "status": "ok",
            "users": len(directory),
            "connections": len(registry),
            "ticks": feed.ticks,
        }

    app.include_router(create_market_router(price_cache))
    app.include_router(create_users_router(sessions, directory))
    app.include_router(
        create_stream_router(handler, registry, queue_size=settings.outbound_queue_size)
    )
    return app


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
