"""
HTTP client tests, using httpx.MockTransport in place of the network.
"""
from __future__ import annotations

import httpx
import pytest

from signalfeed.services.api_client import ApiResponse, FeedEndpoints, SignalFeedClient, auth_headers

BASE = "http://upstream.test"


def _client(handler, endpoints=None):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SignalFeedClient(endpoints or FeedEndpoints.from_base_url(BASE), http=http)


class TestFeedEndpoints:

    def test_rest_layout(self):
        endpoints = FeedEndpoints.from_base_url(BASE + "/")
        assert endpoints.strategy == f"{BASE}/api/signals/{{pair}}"
        assert endpoints.regime == f"{BASE}/api/regime"
        assert endpoints.current_news == f"{BASE}/api/news/current"
        assert endpoints.upcoming_news == f"{BASE}/api/news/upcoming"
        assert endpoints.health == f"{BASE}/api/health"

    def test_overrides(self):
        endpoints = FeedEndpoints.from_base_url(BASE).with_overrides(
            regime="https://hooks.test/regime", upcoming_news="", health=None,
        )
        assert endpoints.regime == "https://hooks.test/regime"
        assert endpoints.upcoming_news is None
        assert endpoints.health == f"{BASE}/api/health"


class TestSignalFeedClient:

    async def test_success_with_auth_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"direction": "long"})

        client = _client(handler)
        response = await client.get_signal("XAUUSD", token="abc")
        await client.aclose()

        assert response == ApiResponse(status=200, data={"direction": "long"})
        assert response.ok
        assert seen == {"url": f"{BASE}/api/signals/XAUUSD", "auth": "Bearer abc"}

    async def test_no_token_no_auth_header(self):
        def handler(request):
            assert "Authorization" not in request.headers
            return httpx.Response(200, json=[])

        response = await _client(handler).get_current_news()
        assert response.status == 200
        assert response.data == []

    async def test_error_detail_and_status_kept(self):
        def handler(request):
            return httpx.Response(401, json={"detail": "Not authenticated"})

        response = await _client(handler).get_regime()
        assert response.status == 401
        assert response.error == "Not authenticated"
        assert not response.ok

    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(402, text="Payment Required")

        response = await _client(handler).get_upcoming_news()
        assert response.status == 402
        assert response.error == "HTTP 402: Payment Required"

    async def test_timeout_maps_to_408(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        response = await _client(handler).get_regime()
        assert response == ApiResponse(status=408, error="Request timeout")

    async def test_transport_error_maps_to_zero(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        response = await _client(handler).health_check()
        assert response.status == 0
        assert "connection refused" in response.error

    async def test_invalid_json_success_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        response = await _client(handler).get_regime()
        assert response.error == "Invalid JSON response"
        assert not response.ok

    async def test_disabled_endpoint_makes_no_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        client = _client(handler, FeedEndpoints(regime=f"{BASE}/api/regime"))
        assert client.enabled("regime")
        assert not client.enabled("strategy")
        assert await client.get_signal("XAUUSD") is None
        assert await client.get_upcoming_news() is None
        assert calls == []

    @pytest.mark.parametrize("token,expected", [(None, {}), ("", {}), ("t", {"Authorization": "Bearer t"})])
    def test_auth_headers(self, token, expected):
        assert auth_headers(token) == expected
