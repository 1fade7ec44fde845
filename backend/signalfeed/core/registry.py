from __future__ import annotations

import logging
from collections import OrderedDict

from signalfeed.config import Settings
from signalfeed.core.orchestrator import FeedClient, OrchestratorConfig, PollingOrchestrator
from signalfeed.services.api_client import SignalFeedClient

log = logging.getLogger("core.registry")

FeedKey = tuple[str, str | None]


class FeedRegistry:
    """
    Keeps one running orchestrator per (pair, token), at most `max_feeds` of them.

    All orchestrators share one upstream client; the registry closes it.
    Feeds are kept in least-recently-used order: registering one past the cap
    closes the feed that was asked for longest ago. A restricted pair requested
    without a token is answered by a one-off gated cycle and never polls.
    """

    def __init__(self, settings: Settings, client: FeedClient | None = None):
        if settings.max_feeds < 1:
            raise ValueError("max_feeds must be at least 1")
        self.settings = settings
        self.max_feeds = settings.max_feeds
        self.client = client or SignalFeedClient(
            settings.endpoints(), timeout=settings.request_timeout_seconds
        )
        self._feeds: OrderedDict[FeedKey, PollingOrchestrator] = OrderedDict()

    def __len__(self) -> int:
        return len(self._feeds)

    def _new_feed(self, pair: str, token: str | None) -> PollingOrchestrator:
        return PollingOrchestrator(
            self.client,
            OrchestratorConfig(
                pair=pair,
                token=token,
                poll_interval_seconds=self.settings.poll_interval_seconds,
                free_pairs=self.settings.free_pairs,
            ),
        )

    async def get(self, pair: str, token: str | None = None) -> PollingOrchestrator:
        key = (pair.upper(), token or None)
        feed = self._feeds.get(key)
        if feed is not None:
            self._feeds.move_to_end(key)
            return feed

        feed = self._new_feed(*key)
        if feed.config.restricted and key[1] is None:
            # Now, we answer with the auth gate only; nothing to poll without a token.
            await feed.fetch_cycle(notify=True)
            return feed

        # Now, we register before activating so concurrent requests reuse this feed.
        self._feeds[key] = feed
        await self._evict()
        log.info("Activating feed for %s (authenticated=%s)", key[0], key[1] is not None)
        await feed.activate()
        return feed

    async def _evict(self) -> None:
        while len(self._feeds) > self.max_feeds:
            (pair, token), feed = self._feeds.popitem(last=False)
            log.info("Closing idle feed for %s (authenticated=%s)", pair, token is not None)
            await feed.close()

    async def check_health(self) -> bool:
        try:
            result = await self.client.health_check()
        except Exception as e:
            log.warning("Health check failed: %s", e)
            return False
        return result is not None and result.status == 200

    async def close(self) -> None:
        for feed in list(self._feeds.values()):
            await feed.close()
        self._feeds.clear()
        await self.client.aclose()
