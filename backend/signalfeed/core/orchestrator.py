"""
Polling Orchestrator.

Owns the fetch/merge/poll lifecycle for one selected pair and exposes a single
consistent snapshot (OrchestratorState) to consumers.

Concept: "all settled" join.
The four endpoint requests of a cycle are issued together and joined with
asyncio.gather(return_exceptions=True). One failing endpoint never stops the
others from being merged.

Concept: cycle guard.
Every cycle takes a sequence number. When it finishes it only writes state if
it is still the latest cycle and the orchestrator is still open; otherwise its
results are discarded. This gives cancellation-on-teardown and
refresh-interrupts-poll without locks (we are single threaded on the loop).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from signalfeed.core.normalize import NormalizedNewsItem, NormalizedStrategy, NormalizedUpcoming
from signalfeed.core.scheduler import PollingTask
from signalfeed.services.api_client import ApiResponse
from signalfeed.services.payloads import decode_news, decode_regime, decode_strategies, decode_upcoming

log = logging.getLogger("core.orchestrator")

DEFAULT_POLL_INTERVAL_SECONDS = 30.0
DEFAULT_FREE_PAIRS: tuple[str, ...] = ("XAUUSD",)

AUTH_REQUIRED_FOR_PAIR = "Authentication required for this pair"
LOGIN_FOR_PAIR_NOTICE = "Please log in to view signals for this pair."
AUTH_REQUIRED_NOTICE = "Authentication required. Please log in."
RATE_LIMIT_NOTICE = "Free limit reached. Please log in for unlimited access."
LOAD_FAILED_NOTICE = "Failed to load data. Please try again."
LOAD_FAILED_ERROR = "Failed to load data"

# Marks an argument of select() that was not passed.
_UNSET: Any = object()

Notifier = Callable[[str], None]


class FeedClient(Protocol):
    async def get_signal(self, pair: str, token: str | None = None) -> ApiResponse | None: ...
    async def get_regime(self, token: str | None = None) -> ApiResponse | None: ...
    async def get_current_news(self, token: str | None = None) -> ApiResponse | None: ...
    async def get_upcoming_news(self, token: str | None = None) -> ApiResponse | None: ...
    async def health_check(self) -> ApiResponse | None: ...
    async def aclose(self) -> None: ...


@dataclass(frozen=True)
class OrchestratorState:
    strategies: tuple[NormalizedStrategy, ...] = field(default_factory=tuple)
    regime_text: str | None = None
    current_news: tuple[NormalizedNewsItem, ...] = field(default_factory=tuple)
    upcoming: NormalizedUpcoming | None = None
    loading: bool = False
    error: str | None = None
    last_updated: datetime | None = None


@dataclass(frozen=True)
class OrchestratorConfig:
    pair: str
    token: str | None = None
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    enabled: bool = True
    free_pairs: tuple[str, ...] = DEFAULT_FREE_PAIRS

    @property
    def restricted(self) -> bool:
        return self.pair.upper() not in {p.upper() for p in self.free_pairs}


def log_notifier(message: str) -> None:
    log.warning("notice: %s", message)


def _status_flags(response: Any) -> tuple[bool, bool]:
    if not isinstance(response, ApiResponse):
        return False, False
    return response.status == 401, response.status == 402


def _payload(name: str, response: Any) -> Any:
    """Return the response data, or None for a failed, disabled or rejected request."""
    if isinstance(response, BaseException):
        log.warning("%s request raised %s: %s", name, type(response).__name__, response)
        return None
    if response is None:
        return None
    if not response.ok:
        log.info("%s request failed with status %d: %s", name, response.status, response.error)
        return None
    return response.data


class PollingOrchestrator:
    """
    Central coordinator for one pair's signal feed.

    The client is injected (dependency injection), never read from a module
    global, so several orchestrators can run side by side.
    """

    def __init__(
        self,
        client: FeedClient,
        config: OrchestratorConfig,
        notify: Notifier | None = None,
        owns_client: bool = False,
    ):
        self.client = client
        self.config = config
        self.notify = notify or log_notifier
        self._owns_client = owns_client
        self._state = OrchestratorState()
        self._cycle = 0
        self._closed = False
        self._poller = PollingTask(self._background_tick, config.poll_interval_seconds)

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def polling(self) -> bool:
        return self._poller.running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def activate(self) -> None:
        """Run one cycle with notifications, then poll silently."""
        if not self.config.enabled or self._closed:
            return
        # Now, we clear any previous timer before scheduling a new one.
        self._poller.stop()
        await self.fetch_cycle(notify=True)
        if not self._closed:
            self._poller.start()

    async def select(
        self,
        pair: str = _UNSET,
        token: str | None = _UNSET,
        enabled: bool = _UNSET,
    ) -> None:
        """
        Change the selected pair, token or enabled flag; re-activates on change.

        Omitted arguments keep their current value. An explicit `token=None`
        clears the token (logout).
        """
        changes = {
            name: value
            for name, value in (("pair", pair), ("token", token), ("enabled", enabled))
            if value is not _UNSET
        }
        if changes.get("token") == "":
            changes["token"] = None
        new_config = replace(self.config, **changes)
        if new_config == self.config:
            return
        self.config = new_config
        if not new_config.enabled:
            self._poller.stop()
            return
        await self.activate()

    async def refresh(self) -> OrchestratorState:
        await self.fetch_cycle(notify=True)
        return self._state

    async def check_health(self) -> bool:
        try:
            result = await self.client.health_check()
        except Exception as e:
            log.warning("Health check failed: %s", e)
            return False
        return result is not None and result.status == 200

    async def close(self) -> None:
        """Stop polling and make sure no in-flight cycle writes state afterwards."""
        self._closed = True
        self._poller.stop()
        if self._owns_client:
            await self.client.aclose()

    async def _background_tick(self) -> None:
        await self.fetch_cycle(notify=False)

    # ------------------------------------------------------------------
    # Fetch cycle
    # ------------------------------------------------------------------

    def _is_current(self, cycle: int) -> bool:
        return not self._closed and cycle == self._cycle

    def _notify(self, enabled: bool, message: str) -> None:
        if enabled:
            self.notify(message)

    async def fetch_cycle(self, notify: bool = False) -> None:
        if not self.config.enabled or self._closed:
            return

        self._cycle += 1
        cycle = self._cycle
        config = self.config

        # Now, we gate restricted pairs before touching the network.
        if config.restricted and not config.token:
            self._notify(notify, LOGIN_FOR_PAIR_NOTICE)
            self._state = replace(self._state, loading=False, error=AUTH_REQUIRED_FOR_PAIR)
            return

        self._state = replace(self._state, loading=True, error=None)

        try:
            signal_res, regime_res, news_res, upcoming_res = await asyncio.gather(
                self.client.get_signal(config.pair, config.token),
                self.client.get_regime(config.token),
                self.client.get_current_news(config.token),
                self.client.get_upcoming_news(config.token),
                return_exceptions=True,
            )
            results = (signal_res, regime_res, news_res, upcoming_res)

            auth_error = False
            rate_limited = False
            for res in results:
                is_auth, is_limit = _status_flags(res)
                auth_error = auth_error or is_auth
                rate_limited = rate_limited or is_limit

            strategies = decode_strategies(_payload("signal", signal_res)).value
            regime_text = decode_regime(_payload("regime", regime_res)).value
            current_news = decode_news(_payload("current news", news_res)).value
            upcoming = decode_upcoming(_payload("upcoming news", upcoming_res)).value

            if not self._is_current(cycle):
                log.debug("Discarding results of superseded cycle %d", cycle)
                return

            if auth_error:
                self._notify(notify, AUTH_REQUIRED_NOTICE)
            elif rate_limited:
                self._notify(notify, RATE_LIMIT_NOTICE)

            # Now, we swap in the whole snapshot at once.
            self._state = OrchestratorState(
                strategies=tuple(strategies),
                regime_text=regime_text,
                current_news=tuple(current_news),
                upcoming=upcoming,
                loading=False,
                error=None,
                last_updated=datetime.now(timezone.utc),
            )
        except Exception as e:
            if not self._is_current(cycle):
                return
            log.exception("Fetch cycle %d for %s failed: %s", cycle, config.pair, e)
            self._state = replace(self._state, loading=False, error=str(e) or LOAD_FAILED_ERROR)
            self._notify(notify, LOAD_FAILED_NOTICE)
        finally:
            # Now, we never leave loading set behind a cancelled cycle.
            if self._is_current(cycle) and self._state.loading:
                self._state = replace(self._state, loading=False)
