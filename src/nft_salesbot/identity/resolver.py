"""Identity resolver - buyer address to display name."""

from __future__ import annotations

import logging
from typing import Sequence

from nft_salesbot.interfaces.identity import NameLookup

log = logging.getLogger(__name__)

UNKNOWN_BUYER = "Unknown"


def truncate_address(address: str) -> str:
    """`0x1234…abcd` form of an address."""
    if not address:
        return UNKNOWN_BUYER
    if len(address) < 10:
        return address
    return f"{address[:6]}…{address[-4:]}"


class IdentityResolver:
    """Tries each lookup in order; the truncated address is the last resort."""

    def __init__(self, lookups: Sequence[NameLookup]) -> None:
        self._lookups = list(lookups)

    async def resolve_display_name(self, address: str | None) -> str:
        if not address or not address.strip():
            return UNKNOWN_BUYER
        address = address.strip().lower()

        for lookup in self._lookups:
            try:
                name = await lookup.lookup(address)
            except Exception as exc:
                log.warning("%s lookup raised for %s: %s", lookup.name, address, exc)
                continue
            if name:
                log.debug("Resolved %s via %s: %s", address, lookup.name, name)
                return name

        return truncate_address(address)
