"""OpenSea API v2 client - sale events, NFT metadata, account profiles."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nft_salesbot.http import HttpProvider

log = logging.getLogger(__name__)


class OpenSeaClient(HttpProvider):
    """Thin async wrapper over the OpenSea REST API.

    Methods raise httpx errors; callers decide whether a failure means
    "no data" (metadata, identity) or "retry next cycle" (feed).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.opensea.io",
        chain: str = "ethereum",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            headers={"X-API-KEY": api_key} if api_key else None,
            transport=transport,
        )
        self._chain = chain

    async def get_sale_events(
        self, collection: str, after: int, limit: int = 50
    ) -> list[dict[str, Any]]:
        """Sale events for a collection slug since `after` (epoch seconds)."""
        data = await self._get_json(
            f"/api/v2/events/collection/{collection}",
            params={"event_type": "sale", "after": int(after), "limit": limit},
        )
        events = (data or {}).get("asset_events") or []
        return [e for e in events if isinstance(e, dict)]

    async def get_nft(self, contract_address: str, token_id: int) -> dict[str, Any] | None:
        """Token metadata, or None when OpenSea does not know the token."""
        try:
            data = await self._get_json(
                f"/api/v2/chain/{self._chain}/contract/{contract_address}/nfts/{token_id}"
            )
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        nft = (data or {}).get("nft")
        return nft if isinstance(nft, dict) else None

    async def get_collection(self, slug: str) -> dict[str, Any] | None:
        try:
            data = await self._get_json(f"/api/v2/collections/{slug}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        return data if isinstance(data, dict) else None

    async def get_account(self, address: str) -> dict[str, Any] | None:
        try:
            data = await self._get_json(f"/api/v2/accounts/{address}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        return data if isinstance(data, dict) else None
