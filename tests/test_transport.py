"""
Tests for the aiohttp transport.
"""

import asyncio

import aiohttp
import pytest
from aioresponses import aioresponses

from hookfetch import HttpClient, RetryConfiguration
from hookfetch.exceptions import TransportError
from hookfetch.http.messages import Request
from hookfetch.transports import AiohttpTransport


class TestAiohttpTransportInitialization:
    """Test transport initialization."""

    def test_defaults(self):
        transport = AiohttpTransport()
        assert transport.timeout.total == 30.0
        assert transport.session is None

    def test_custom_timeout(self):
        assert AiohttpTransport(timeout=2.5).timeout.total == 2.5


class TestAiohttpTransportRequests:
    """Test sending requests with mocked HTTP responses."""

    @pytest.mark.asyncio
    async def test_get(self):
        with aioresponses() as m:
            m.get("https://api.example.com/users", status=200, body="[]", headers={"Content-Type": "application/json"})

            async with AiohttpTransport() as transport:
                request = Request("https://api.example.com/users")
                response = await transport(request)

            assert response.status == 200
            assert response.ok
            assert response.body == b"[]"
            assert response.headers["content-type"] == "application/json"
            assert response.url == "https://api.example.com/users"
            assert response.request is request

    @pytest.mark.asyncio
    async def test_post_sends_body_and_headers(self):
        with aioresponses() as m:
            m.post("https://api.example.com/users", status=201, reason="Created")

            async with AiohttpTransport() as transport:
                response = await transport(
                    Request("https://api.example.com/users", method="POST", headers={"X-Token": "abc"}, body=b"{}")
                )

            assert response.status == 201
            assert response.status_text == "Created"
            [(key, calls)] = m.requests.items()
            assert key[0] == "POST"
            assert calls[0].kwargs["data"] == b"{}"
            assert calls[0].kwargs["headers"]["x-token"] == "abc"

    @pytest.mark.asyncio
    async def test_error_status_is_a_response(self):
        """Test non-2xx statuses come back as responses, not errors."""
        with aioresponses() as m:
            m.get("https://api.example.com/missing", status=404)

            async with AiohttpTransport() as transport:
                response = await transport(Request("https://api.example.com/missing"))

            assert response.status == 404
            assert not response.ok

    @pytest.mark.asyncio
    async def test_manual_redirect_disables_following(self):
        with aioresponses() as m:
            m.get("https://api.example.com/old", status=302, headers={"Location": "https://api.example.com/new"})

            async with AiohttpTransport() as transport:
                response = await transport(Request("https://api.example.com/old", redirect="manual"))

            assert response.status == 302
            [(_, calls)] = m.requests.items()
            assert calls[0].kwargs["allow_redirects"] is False

    @pytest.mark.asyncio
    async def test_error_redirect_is_transport_error(self):
        """Test redirect="error" turns a 3xx into a transport failure."""
        with aioresponses() as m:
            m.get("https://api.example.com/old", status=301, headers={"Location": "https://api.example.com/new"})

            async with AiohttpTransport() as transport:
                with pytest.raises(TransportError, match="HTTP 301") as exc_info:
                    await transport(Request("https://api.example.com/old", redirect="error"))

            assert exc_info.value.request.redirect == "error"
            [(_, calls)] = m.requests.items()
            assert calls[0].kwargs["allow_redirects"] is False

    @pytest.mark.asyncio
    async def test_connection_error(self):
        with aioresponses() as m:
            m.get("https://api.example.com/users", exception=aiohttp.ClientConnectionError("refused"))

            async with AiohttpTransport() as transport:
                with pytest.raises(TransportError, match="ClientConnectionError") as exc_info:
                    await transport(Request("https://api.example.com/users"))

            assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)
            assert exc_info.value.request.url == "https://api.example.com/users"

    @pytest.mark.asyncio
    async def test_timeout(self):
        with aioresponses() as m:
            m.get("https://api.example.com/slow", exception=asyncio.TimeoutError())

            async with AiohttpTransport() as transport:
                with pytest.raises(TransportError):
                    await transport(Request("https://api.example.com/slow"))


class TestAiohttpTransportLifecycle:
    """Test session ownership."""

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_session(self):
        transport = AiohttpTransport()
        session = await transport._ensure_session()
        await transport.aclose()
        assert session.closed
        assert transport.session is None

    @pytest.mark.asyncio
    async def test_external_session_left_open(self):
        async with aiohttp.ClientSession() as session:
            transport = AiohttpTransport(session=session)
            await transport.aclose()
            assert not session.closed
            assert transport.session is session

    @pytest.mark.asyncio
    async def test_session_recreated_after_close(self):
        transport = AiohttpTransport()
        first = await transport._ensure_session()
        await transport.aclose()
        second = await transport._ensure_session()
        assert second is not first
        await transport.aclose()


class TestClientWithAiohttp:
    """End-to-end: client, retry interceptor and aiohttp transport."""

    @pytest.mark.asyncio
    async def test_retry_over_http(self):
        with aioresponses() as m:
            m.get("https://api.example.com/jobs", status=503)
            m.get("https://api.example.com/jobs", status=200, body="done")

            client = HttpClient(AiohttpTransport()).configure(
                lambda c: c.with_base_url("https://api.example.com").with_retry(RetryConfiguration(max_retries=2))
            )
            async with client:
                response = await client.get("/jobs")

            assert response.status == 200
            assert response.body == b"done"
