"""
Pytest configuration and shared fixtures for SignalFeed tests.
"""
from __future__ import annotations

import asyncio

import pytest

from signalfeed.services.api_client import ApiResponse


REST_SIGNAL = {
    "strategy_name": "Breakout",
    "direction": "LONG",
    "entry_level": 2350,
    "take_profit": 2385,
    "stop_loss": 2325,
    "confidence": "High",
    "pair": "XAUUSD",
}


class FakeClient:
    """
    In-memory stand-in for SignalFeedClient.

    `responses` maps endpoint name to an ApiResponse, None (endpoint disabled)
    or an exception to raise. With `hold=True` every call parks on an
    asyncio.Event (kept in `held`) until the test releases it; the response is
    captured at call time.
    """

    def __init__(self, **responses):
        self.responses = {
            "signal": ApiResponse(status=200, data=dict(REST_SIGNAL)),
            "regime": ApiResponse(status=200, data={"regime_text": "Trending"}),
            "current_news": ApiResponse(status=200, data=[{"id": "n1", "content": "Gold rallies"}]),
            "upcoming_news": ApiResponse(status=200, data={"text": "CPI at 12:30"}),
            "health": ApiResponse(status=200, data={"status": "ok"}),
        }
        self.responses.update(responses)
        self.calls: list[tuple[str, str | None]] = []
        self.hold = False
        self.held: list[asyncio.Event] = []
        self.closed = False

    async def _respond(self, name: str, token: str | None = None):
        self.calls.append((name, token))
        response = self.responses[name]
        if self.hold:
            gate = asyncio.Event()
            self.held.append(gate)
            await gate.wait()
        if isinstance(response, BaseException):
            raise response
        return response

    async def get_signal(self, pair, token=None):
        return await self._respond("signal", token)

    async def get_regime(self, token=None):
        return await self._respond("regime", token)

    async def get_current_news(self, token=None):
        return await self._respond("current_news", token)

    async def get_upcoming_news(self, token=None):
        return await self._respond("upcoming_news", token)

    async def health_check(self):
        return await self._respond("health")

    async def aclose(self):
        self.closed = True

    def release(self):
        for gate in self.held:
            gate.set()
        self.held.clear()


@pytest.fixture
def rest_signal():
    return dict(REST_SIGNAL)


@pytest.fixture
def make_client():
    return FakeClient


@pytest.fixture
def notices():
    """Collects notifier messages."""
    return []
