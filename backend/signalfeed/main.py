from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from signalfeed.config import settings
from signalfeed.core.registry import FeedRegistry
from signalfeed.log import setup_logging
from signalfeed.routers.feed import router as feed_router

setup_logging(settings.log_level)
log = logging.getLogger("signalfeed.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Now, we create the feed registry for this process.
    # Orchestrators are created lazily per pair on the first request.
    app.state.registry = FeedRegistry(settings)
    log.info("Feed registry ready (poll interval %.0f seconds).", settings.poll_interval_seconds)
    try:
        yield
    finally:
        # Now, we stop every poller and close the upstream connection pool.
        await app.state.registry.close()
        log.info("Feed registry closed.")


app = FastAPI(title="SignalFeed", version="0.1.0", lifespan=lifespan)
app.include_router(feed_router)
