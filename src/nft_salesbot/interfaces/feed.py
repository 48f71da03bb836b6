"""SaleEventFeed protocol - marketplace sale events since a watermark."""

from __future__ import annotations

from typing import Any, Protocol


class SaleEventFeed(Protocol):
    """Returns raw marketplace sale events for one collection."""

    async def get_sale_events(
        self, collection: str, after: int, limit: int = 50
    ) -> list[dict[str, Any]]:
        """Sale events for `collection` with timestamp >= `after` (epoch seconds)."""
        ...
