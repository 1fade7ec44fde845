from __future__ import annotations
from dataclasses import dataclass
import os
from dotenv import load_dotenv

from signalfeed.services.api_client import FeedEndpoints

load_dotenv()


def _optional_url(name: str) -> str | None:
    # Now, we read an endpoint override.
    # Unset means "use the REST default"; an explicit empty string disables the endpoint.
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip()


# Now, we define the Settings class.
# We use @dataclass(frozen=True) to make this immutable.
# Once settings are loaded, they should not change during runtime.
@dataclass(frozen=True)
class Settings:
    # Now, we fetch the upstream API base URL.
    # We provide a sensible default for local development.
    api_base_url: str = os.getenv("SIGNALFEED_API_BASE_URL", "http://localhost:8080")

    strategy_url: str | None = _optional_url("STRATEGY_URL")
    regime_url: str | None = _optional_url("REGIME_URL")
    current_news_url: str | None = _optional_url("CURRENT_NEWS_URL")
    upcoming_news_url: str | None = _optional_url("UPCOMING_NEWS_URL")
    health_url: str | None = _optional_url("HEALTH_URL")

    # Now, we parse the free pairs list.
    # The env var is a comma-separated string ("XAUUSD,EURUSD").
    # We split it, strip whitespace, and uppercase it to ensure consistency.
    free_pairs: tuple[str, ...] = tuple(
        s.strip().upper()
        for s in os.getenv("FREE_PAIRS", "XAUUSD").split(",")
        if s.strip()
    )

    poll_interval_seconds: float = float(os.getenv("POLL_INTERVAL_SECONDS", "30"))
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    # Now, we cap how many (pair, token) feeds poll at once; the least recently used is closed first.
    max_feeds: int = int(os.getenv("MAX_FEEDS", "64"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def endpoints(self) -> FeedEndpoints:
        """Build the endpoint map handed to the client and orchestrator."""
        base = FeedEndpoints.from_base_url(self.api_base_url)
        overrides = {
            "strategy": self.strategy_url,
            "regime": self.regime_url,
            "current_news": self.current_news_url,
            "upcoming_news": self.upcoming_news_url,
            "health": self.health_url,
        }
        return base.with_overrides(**overrides)


settings = Settings()
