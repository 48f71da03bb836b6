"""PriceProvider protocol - base asset to fiat price source."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class PriceProvider(Protocol):
    """A fiat price source for the base asset."""

    name: str

    async def get_price(self) -> Decimal | None:
        """Current price, or None when unavailable or malformed."""
        ...
