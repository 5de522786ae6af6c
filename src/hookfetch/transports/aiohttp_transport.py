"""
aiohttp-backed transport.

Maps a Request onto aiohttp.ClientSession.request() and reads the full body
into a Response. Connection handling, encoding and redirects are aiohttp's
business; browser-only options (mode, credentials, cache, referrer,
integrity) are ignored. redirect="manual" disables redirect following and
redirect="error" turns a 3xx response into a TransportError.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import aiohttp
from multidict import CIMultiDict

from hookfetch.exceptions import TransportError
from hookfetch.http.messages import Request, Response
from hookfetch.utils.logging import get_logger

logger = get_logger("hookfetch.transports.aiohttp")


class AiohttpTransport:
    """
    Transport sending requests with aiohttp.

    Example:
        ```python
        transport = AiohttpTransport(timeout=30)
        client = HttpClient(transport)
        async with client:
            response = await client.get("https://api.example.com/users")
        ```
    """

    def __init__(self, timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize AiohttpTransport.

        Args:
            timeout: Total request timeout in seconds
            session: Existing session to use; it is not closed by aclose()
        """
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists, creating it if needed."""
        async with self._session_lock:
            if self.session is None or self.session.closed:
                self.session = aiohttp.ClientSession(timeout=self.timeout)
                self._owns_session = True
            return self.session

    async def __call__(self, request: Request) -> Response:
        session = await self._ensure_session()

        kwargs: dict[str, Any] = {"headers": CIMultiDict(request.headers)}
        if request.body is not None:
            kwargs["data"] = request.body
        if request.redirect in ("error", "manual"):
            kwargs["allow_redirects"] = False

        try:
            async with session.request(request.method, request.url, **kwargs) as resp:
                if request.redirect == "error" and 300 <= resp.status < 400:
                    raise TransportError(
                        f"{request.method} {request.url} redirected (HTTP {resp.status}) with redirect='error'",
                        request=request,
                    )
                body = await resp.read()
                logger.debug(f"{request.method} {request.url} {resp.status} {len(body)}B")
                return Response(
                    status=resp.status,
                    headers=resp.headers,
                    body=body,
                    status_text=resp.reason or "",
                    url=str(resp.url),
                    request=request,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"{request.method} {request.url} failed: {type(e).__name__}: {e}", request=request, cause=e
            ) from e

    async def aclose(self) -> None:
        """Close the session if this transport created it."""
        async with self._session_lock:
            if self._owns_session and self.session is not None and not self.session.closed:
                await self.session.close()
            if self._owns_session:
                self.session = None

    async def __aenter__(self) -> "AiohttpTransport":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.aclose()
