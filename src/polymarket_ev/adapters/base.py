"""Shared plumbing for the read-only HTTP adapters."""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import httpx


class ThrottledHTTPAdapter:
    """
    One ``httpx.AsyncClient`` per adapter with a minimum delay between calls.

    Subclasses add retries around ``_request`` and parse the payloads.
    """

    def __init__(
        self,
        base_url: str,
        requests_per_second: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._min_delay = 1.0 / requests_per_second
        self._last_request_time = 0.0
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(30.0, connect=10.0),
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _wait_turn(self) -> None:
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self._min_delay:
            await asyncio.sleep(self._min_delay - elapsed)
        self._last_request_time = time.monotonic()

    async def _request(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        """GET ``path``; non-2xx raises ``httpx.HTTPStatusError``."""
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} used before connect()")
        await self._wait_turn()
        resp = await self._client.get(path, params=params)
        resp.raise_for_status()
        return resp

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
