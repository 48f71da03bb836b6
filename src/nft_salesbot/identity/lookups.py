"""Name lookups: ENS reverse resolution and OpenSea profile usernames."""

from __future__ import annotations

import logging

import httpx

from nft_salesbot.http import HttpProvider
from nft_salesbot.opensea.client import OpenSeaClient

log = logging.getLogger(__name__)


class EnsDataLookup(HttpProvider):
    """Reverse ENS lookup through an ensdata-style HTTP API.

    `GET {base}/{address}` returns a JSON object whose `ens_primary` (or
    `ens`) field holds the primary name.
    """

    name = "ens"

    def __init__(
        self,
        base_url: str = "https://api.ensdata.net",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)

    async def lookup(self, address: str) -> str | None:
        try:
            data = await self._get_json(f"/{address}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != 404:
                log.warning("ENS lookup for %s failed: HTTP %d", address, exc.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("ENS lookup for %s failed: %s", address, exc)
            return None
        if not isinstance(data, dict):
            return None
        name = data.get("ens_primary") or data.get("ens")
        if isinstance(name, str) and name.strip():
            log.debug("ENS lookup for %s: %s", address, name)
            return name.strip()
        return None


class OpenSeaProfileLookup:
    """OpenSea account username."""

    name = "opensea_profile"

    def __init__(self, client: OpenSeaClient) -> None:
        self._client = client

    async def lookup(self, address: str) -> str | None:
        try:
            account = await self._client.get_account(address)
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("OpenSea profile lookup for %s failed: %s", address, exc)
            return None
        if not account:
            return None
        username = account.get("username")
        if isinstance(username, str) and username.strip():
            return username.strip()
        return None
