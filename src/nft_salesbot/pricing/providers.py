"""Fiat price providers for ETH."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from nft_salesbot.http import HttpProvider

log = logging.getLogger(__name__)


def parse_positive_decimal(raw: Any) -> Decimal | None:
    """Accept only finite, strictly positive numbers."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


class CoinGeckoPriceProvider(HttpProvider):
    """CoinGecko simple/price endpoint (no API key needed)."""

    name = "coingecko"

    def __init__(
        self,
        fiat: str = "usd",
        base_url: str = "https://api.coingecko.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._fiat = fiat.lower()

    async def get_price(self) -> Decimal | None:
        try:
            data = await self._get_json(
                "/api/v3/simple/price",
                params={"ids": "ethereum", "vs_currencies": self._fiat},
            )
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("CoinGecko price fetch failed: %s", exc)
            return None
        return parse_positive_decimal((data or {}).get("ethereum", {}).get(self._fiat))


class CoinbasePriceProvider(HttpProvider):
    """Coinbase public spot price endpoint."""

    name = "coinbase"

    def __init__(
        self,
        fiat: str = "usd",
        base_url: str = "https://api.coinbase.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._pair = f"ETH-{fiat.upper()}"

    async def get_price(self) -> Decimal | None:
        try:
            data = await self._get_json(f"/v2/prices/{self._pair}/spot")
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("Coinbase price fetch failed: %s", exc)
            return None
        return parse_positive_decimal((data or {}).get("data", {}).get("amount"))


PROVIDERS = {
    CoinGeckoPriceProvider.name: CoinGeckoPriceProvider,
    CoinbasePriceProvider.name: CoinbasePriceProvider,
}


def build_price_providers(names: list[str], fiat: str = "usd") -> list:
    """Instantiate providers by name, in priority order. Unknown names are skipped."""
    providers = []
    for name in names:
        cls = PROVIDERS.get(name)
        if cls is None:
            log.warning("Unknown price provider %r, ignoring", name)
            continue
        providers.append(cls(fiat=fiat))
    return providers
