"""Publisher protocol - posts formatted text to the social platform."""

from __future__ import annotations

from typing import Protocol

from nft_salesbot.models.records import PublishResult


class Publisher(Protocol):
    """Posts a message. Failures are reported in the result, not raised."""

    async def publish(self, text: str) -> PublishResult:
        ...
