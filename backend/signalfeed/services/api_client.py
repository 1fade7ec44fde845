"""
Upstream HTTP client.

Async-first (non-blocking I/O) wrapper around httpx for the four signal
endpoints plus the health probe. Transport problems are converted into
ApiResponse values instead of exceptions, so the orchestrator can join all
requests and still look at every status code.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

import httpx

log = logging.getLogger("services.api_client")

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class FeedEndpoints:
    """
    One optional URL per logical endpoint.
    A None or empty URL disables that fetch; `{pair}` in the strategy URL is
    replaced by the selected pair.
    """
    strategy: str | None = None
    regime: str | None = None
    current_news: str | None = None
    upcoming_news: str | None = None
    health: str | None = None

    @classmethod
    def from_base_url(cls, base_url: str) -> "FeedEndpoints":
        base = base_url.rstrip("/")
        return cls(
            strategy=f"{base}/api/signals/{{pair}}",
            regime=f"{base}/api/regime",
            current_news=f"{base}/api/news/current",
            upcoming_news=f"{base}/api/news/upcoming",
            health=f"{base}/api/health",
        )

    def with_overrides(self, **overrides: str | None) -> "FeedEndpoints":
        """Replace the endpoints whose override is not None ("" disables one)."""
        changes = {name: (url or None) for name, url in overrides.items() if url is not None}
        return replace(self, **changes)


@dataclass(frozen=True)
class ApiResponse:
    status: int
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300 and self.error is None


def auth_headers(token: str | None) -> dict[str, str]:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


class SignalFeedClient:
    """
    Async client for the signal backend.

    Key points:
    - One shared httpx.AsyncClient per instance (closed by `aclose`)
    - Per-request timeout, reported as status 408
    - Never raises for HTTP or transport failures
    """

    def __init__(
        self,
        endpoints: FeedEndpoints,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http: httpx.AsyncClient | None = None,
    ):
        self.endpoints = endpoints
        self.timeout = timeout
        # Now, we either borrow the caller's client (tests inject a MockTransport) or own one.
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    def enabled(self, endpoint: str) -> bool:
        return bool(getattr(self.endpoints, endpoint))

    async def _request(self, url: str, token: str | None = None) -> ApiResponse:
        headers = {"Content-Type": "application/json", **auth_headers(token)}
        try:
            response = await self._http.get(url, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException:
            log.warning("Request to %s timed out after %.1fs", url, self.timeout)
            return ApiResponse(status=408, error="Request timeout")
        except httpx.HTTPError as e:
            log.warning("Request to %s failed: %s", url, e)
            return ApiResponse(status=0, error=str(e) or type(e).__name__)

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            detail = data.get("detail") if isinstance(data, dict) else None
            error = detail or f"HTTP {response.status_code}: {response.reason_phrase}"
            log.info("Upstream %s answered %d", url, response.status_code)
            return ApiResponse(status=response.status_code, error=str(error))

        if data is None and response.content:
            log.warning("Upstream %s returned a non-JSON body", url)
            return ApiResponse(status=response.status_code, error="Invalid JSON response")

        return ApiResponse(status=response.status_code, data=data)

    async def _get(self, endpoint: str, token: str | None = None, **params: str) -> ApiResponse | None:
        url = getattr(self.endpoints, endpoint)
        if not url:
            return None
        return await self._request(url.format(**params) if params else url, token)

    async def health_check(self) -> ApiResponse | None:
        return await self._get("health")

    async def get_signal(self, pair: str, token: str | None = None) -> ApiResponse | None:
        return await self._get("strategy", token, pair=pair)

    async def get_regime(self, token: str | None = None) -> ApiResponse | None:
        return await self._get("regime", token)

    async def get_current_news(self, token: str | None = None) -> ApiResponse | None:
        return await self._get("current_news", token)

    async def get_upcoming_news(self, token: str | None = None) -> ApiResponse | None:
        return await self._get("upcoming_news", token)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
