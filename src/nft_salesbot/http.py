"""Shared httpx plumbing for the provider adapters."""

from __future__ import annotations

import logging
from typing import Any

import httpx

log = logging.getLogger(__name__)

USER_AGENT = "nft-salesbot/0.1"


class HttpProvider:
    """Base for JSON-over-HTTP adapters.

    A fresh AsyncClient is opened per request; `transport` lets tests swap
    in an `httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            self._headers.update(headers)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=10),
            headers=self._headers,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET and decode JSON. Raises httpx errors on transport or HTTP failure."""
        async with self._client() as client:
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()

    async def _post_json(self, path: str, payload: Any) -> Any:
        async with self._client() as client:
            resp = await client.post(path, json=payload)
            resp.raise_for_status()
            return resp.json()
