"""Tests for the sandbox health probe."""

import httpx
import pytest

from vibe_agent.core.health import check_sandbox_health


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestCheckSandboxHealth:
    """Tests for check_sandbox_health."""

    @pytest.mark.asyncio
    async def test_ok_response_is_alive(self):
        async with _client(lambda request: httpx.Response(200)) as client:
            assert await check_sandbox_health("https://3000-x.proxy.daytona.works", client=client) is True

    @pytest.mark.asyncio
    async def test_redirect_status_is_alive(self):
        async with _client(lambda request: httpx.Response(307)) as client:
            assert await check_sandbox_health("https://x", client=client) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 502, 503])
    async def test_error_status_is_unreachable(self, status):
        async with _client(lambda request: httpx.Response(status)) as client:
            assert await check_sandbox_health("https://x", client=client) is False

    @pytest.mark.asyncio
    async def test_transport_error_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            assert await check_sandbox_health("https://x", client=client) is False

    @pytest.mark.asyncio
    async def test_missing_url_is_unreachable(self):
        assert await check_sandbox_health(None) is False
        assert await check_sandbox_health("") is False
