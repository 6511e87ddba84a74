"""Shared async HTTP client with configurable timeout."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    Owned by the embedding application and injected into providers; safe to
    share between concurrent callers. Pass ``transport`` to replace the
    network (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @asynccontextmanager
    async def stream(
        self, method: str, url: str, **kwargs: Any
    ) -> AsyncIterator[httpx.Response]:
        """Send a request and yield the unread response; it is closed on exit."""
        async with self._client.stream(method, url, **kwargs) as response:
            yield response

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
