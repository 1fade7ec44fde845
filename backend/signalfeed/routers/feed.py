from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request

from signalfeed.core.registry import FeedRegistry
from signalfeed.schemas import FeedStateOut, HealthOut

router = APIRouter(prefix="/api/v1", tags=["feed"])


def get_registry(request: Request) -> FeedRegistry:
    return request.app.state.registry


def bearer_token(authorization: str | None = Header(None)) -> str | None:
    # Now, we forward the caller's token untouched; validating it is the upstream's job.
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@router.get("/feed/{pair}", response_model=FeedStateOut)
async def get_feed(
    pair: str,
    token: str | None = Depends(bearer_token),
    registry: FeedRegistry = Depends(get_registry),
):
    feed = await registry.get(pair, token)
    return FeedStateOut.from_state(feed.config.pair, feed.state)


@router.post("/feed/{pair}/refresh", response_model=FeedStateOut)
async def refresh_feed(
    pair: str,
    token: str | None = Depends(bearer_token),
    registry: FeedRegistry = Depends(get_registry),
):
    feed = await registry.get(pair, token)
    state = await feed.refresh()
    return FeedStateOut.from_state(feed.config.pair, state)


@router.get("/health", response_model=HealthOut)
async def health(registry: FeedRegistry = Depends(get_registry)):
    return HealthOut(ok=True, upstream=await registry.check_health())
