"""NameLookup protocol - address to human-readable name."""

from __future__ import annotations

from typing import Protocol


class NameLookup(Protocol):
    """One identity source (naming service, marketplace profile)."""

    name: str

    async def lookup(self, address: str) -> str | None:
        """Display name for `address`, or None. Swallows its own errors."""
        ...
