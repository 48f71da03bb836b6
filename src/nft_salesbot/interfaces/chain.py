"""Chain protocols - transaction lookup and live subscription."""

from __future__ import annotations

from typing import AsyncIterator, Protocol

from nft_salesbot.models.sales import Receipt, Transaction


class ChainClient(Protocol):
    """Read access to transactions and receipts."""

    async def get_transaction(self, tx_hash: str) -> Transaction | None:
        ...

    async def get_receipt(self, tx_hash: str) -> Receipt | None:
        ...


class TransactionSubscription(Protocol):
    """Streams hashes of transactions addressed to the given contracts."""

    def hashes(self, addresses: list[str]) -> AsyncIterator[str]:
        ...
