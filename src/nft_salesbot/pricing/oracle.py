"""Price oracle - cached ETH->fiat rate with provider fallback."""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Callable, Sequence

from nft_salesbot.interfaces.price import PriceProvider
from nft_salesbot.models.sales import PriceQuote

log = logging.getLogger(__name__)


class PriceOracle:
    """Serves the base-asset price from a TTL cache.

    On a miss, providers are asked in priority order and the first positive
    answer wins. If every provider fails, the last known quote is reused
    (even if stale), and without one the fixed fallback price is returned.
    """

    def __init__(
        self,
        providers: Sequence[PriceProvider],
        ttl_seconds: int = 900,
        fallback_price: Decimal = Decimal("3000"),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._providers = list(providers)
        self._ttl = ttl_seconds
        self._fallback = fallback_price
        self._clock = clock
        self._quote: PriceQuote | None = None

    @property
    def cached_quote(self) -> PriceQuote | None:
        return self._quote

    def clear(self) -> None:
        self._quote = None

    async def get_base_price(self) -> Decimal:
        return (await self.get_quote()).value

    async def get_quote(self) -> PriceQuote:
        now = self._clock()
        if self._quote is not None and now - self._quote.fetched_at < self._ttl:
            return self._quote

        for provider in self._providers:
            try:
                price = await provider.get_price()
            except Exception as exc:
                log.warning("Price provider %s raised: %s", provider.name, exc)
                continue
            if price is not None and price > 0:
                self._quote = PriceQuote(value=price, fetched_at=now, source=provider.name)
                log.debug("ETH price %s from %s", price, provider.name)
                return self._quote

        if self._quote is not None:
            log.warning(
                "All price providers failed, reusing last quote %s from %s",
                self._quote.value, self._quote.source,
            )
            return self._quote

        log.warning("All price providers failed, using fallback price %s", self._fallback)
        return PriceQuote(value=self._fallback, fetched_at=now, source="fallback")
