"""MetadataProvider protocol - one source of descriptive token fields."""

from __future__ import annotations

from typing import Protocol

from nft_salesbot.models.sales import ProviderMetadata


class MetadataProvider(Protocol):
    """A single metadata source. Must never raise for provider failures."""

    name: str

    async def fetch(self, contract_address: str, token_id: int) -> ProviderMetadata | None:
        """Normalized fields for the token, or None if the provider had nothing."""
        ...
