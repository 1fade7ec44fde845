"""
JSON surface tests. The registry is replaced with a stub so no poller runs.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from signalfeed.core.normalize import HtmlUpcoming, NormalizedNewsItem, UpcomingItem
from signalfeed.core.orchestrator import OrchestratorConfig, OrchestratorState
from signalfeed.routers.feed import get_registry, router
from signalfeed.services.api_adapter import parse_signal


class StubFeed:
    def __init__(self, pair, state):
        self.config = OrchestratorConfig(pair=pair)
        self.state = state
        self.refreshed = 0

    async def refresh(self):
        self.refreshed += 1
        return self.state


class StubRegistry:
    def __init__(self, state, healthy=True):
        self.state = state
        self.healthy = healthy
        self.requests = []
        self.feeds = []

    async def get(self, pair, token=None):
        self.requests.append((pair, token))
        feed = StubFeed(pair.upper(), self.state)
        self.feeds.append(feed)
        return feed

    async def check_health(self):
        return self.healthy


@pytest.fixture
def state(rest_signal):
    return OrchestratorState(
        strategies=(parse_signal(rest_signal),),
        regime_text="Trending",
        current_news=(NormalizedNewsItem(id="n1", text="Gold rallies"),),
        upcoming=HtmlUpcoming(items=(UpcomingItem(id="u1", html="<b>CPI</b>"),)),
        last_updated=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def registry(state):
    return StubRegistry(state)


@pytest.fixture
def http(registry):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_registry] = lambda: registry
    return TestClient(app)


class TestFeedRoutes:

    def test_get_feed(self, http, registry):
        response = http.get("/api/v1/feed/xauusd")

        assert response.status_code == 200
        body = response.json()
        assert body["pair"] == "XAUUSD"
        assert body["strategies"][0]["strategy_name"] == "Breakout"
        assert body["strategies"][0]["direction"] == "BUY"
        assert body["strategies"][0]["confidence_percent"] == 85
        assert body["regime_text"] == "Trending"
        assert body["current_news"] == [{"id": "n1", "text": "Gold rallies"}]
        assert body["upcoming"] == {"mode": "html", "items": [{"id": "u1", "html": "<b>CPI</b>"}]}
        assert body["error"] is None
        assert registry.requests == [("xauusd", None)]

    def test_bearer_token_forwarded(self, http, registry):
        http.get("/api/v1/feed/EURUSD", headers={"Authorization": "Bearer secret"})
        http.get("/api/v1/feed/EURUSD", headers={"Authorization": "Basic nope"})
        assert registry.requests == [("EURUSD", "secret"), ("EURUSD", None)]

    def test_refresh(self, http, registry):
        response = http.post("/api/v1/feed/XAUUSD/refresh")
        assert response.status_code == 200
        assert registry.feeds[0].refreshed == 1

    def test_error_state_is_served(self, http, registry):
        registry.state = OrchestratorState(error="Authentication required for this pair")
        body = http.get("/api/v1/feed/GBPUSD").json()
        assert body["error"] == "Authentication required for this pair"
        assert body["strategies"] == []
        assert body["upcoming"] is None

    @pytest.mark.parametrize("healthy", [True, False])
    def test_health(self, http, registry, healthy):
        registry.healthy = healthy
        assert http.get("/api/v1/health").json() == {"ok": True, "upstream": healthy}
