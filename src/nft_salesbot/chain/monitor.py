"""Chain monitor - turns subscribed transaction hashes into sale candidates."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

from nft_salesbot.chain.logs import find_token_transfer
from nft_salesbot.interfaces.chain import ChainClient, TransactionSubscription
from nft_salesbot.models.sales import SaleCandidate, SaleSource, TransactionEvidence

if TYPE_CHECKING:
    from nft_salesbot.ingest.pipeline import SalePipeline

log = logging.getLogger(__name__)


def candidate_from_evidence(
    evidence: TransactionEvidence,
    contracts: Sequence[str],
    occurred_at: float | None = None,
) -> SaleCandidate | None:
    """Sale candidate from the last tracked-contract Transfer in the receipt."""
    if evidence.receipt.status == 0:
        return None
    transfer = find_token_transfer(evidence.receipt, set(contracts))
    if transfer is None:
        return None
    return SaleCandidate(
        contract_address=transfer.contract_address,
        token_id=transfer.token_id,
        source_id=evidence.transaction.hash,
        source=SaleSource.CHAIN_MONITOR,
        buyer_address=transfer.to_address,
        evidence=evidence,
        occurred_at=occurred_at,
    )


class ChainMonitor:
    """Consumes a transaction subscription and feeds the sale pipeline.

    The subscription watches both the tracked token contracts and the
    marketplace contracts, since a marketplace sale is addressed to the
    marketplace rather than to the token contract.
    """

    def __init__(
        self,
        subscription: TransactionSubscription,
        chain: ChainClient,
        pipeline: SalePipeline,
        contract_addresses: Sequence[str],
        marketplace_addresses: Sequence[str] = (),
        receipt_retries: int = 10,
        receipt_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._subscription = subscription
        self._chain = chain
        self._pipeline = pipeline
        self._contracts = [c.lower() for c in contract_addresses]
        self._watch = list(dict.fromkeys(
            self._contracts + [m.lower() for m in marketplace_addresses]
        ))
        self._receipt_retries = receipt_retries
        self._receipt_delay = receipt_delay
        self._sleep = sleep
        self.transactions_seen = 0

    @property
    def connected(self) -> bool:
        return bool(getattr(self._subscription, "connected", False))

    async def run(self) -> None:
        """Process hashes until cancelled."""
        log.info("Chain monitor watching %d addresses", len(self._watch))
        async for tx_hash in self._subscription.hashes(self._watch):
            try:
                await self.handle_transaction(tx_hash)
            except asyncio.CancelledError:
                raise
            except Exception:
                log.error("Failed to handle transaction %s", tx_hash, exc_info=True)

    async def handle_transaction(self, tx_hash: str) -> bool:
        """Fetch, inspect and hand off one transaction. Returns True if a
        publication was enqueued."""
        tx_hash = tx_hash.lower()
        self.transactions_seen += 1
        if self._pipeline.seen(tx_hash):
            log.debug("Transaction %s already processed", tx_hash)
            return False

        evidence = await self._wait_for_evidence(tx_hash)
        if evidence is None:
            return False

        candidate = candidate_from_evidence(evidence, self._contracts, occurred_at=time.time())
        if candidate is None:
            log.debug("Transaction %s moved no tracked token", tx_hash)
            return False

        log.info("Chain sale candidate %s/%d in %s",
                 candidate.contract_address, candidate.token_id, tx_hash)
        return await self._pipeline.process_sale(candidate)

    async def _wait_for_evidence(self, tx_hash: str) -> TransactionEvidence | None:
        """Transaction plus receipt, polling for the receipt while the
        transaction is still pending."""
        transaction = await self._chain.get_transaction(tx_hash)
        if transaction is None:
            log.debug("Transaction %s not found", tx_hash)
            return None

        receipt = await self._chain.get_receipt(tx_hash)
        attempts = 0
        while receipt is None and attempts < self._receipt_retries:
            attempts += 1
            await self._sleep(self._receipt_delay)
            receipt = await self._chain.get_receipt(tx_hash)
        if receipt is None:
            log.info("No receipt for %s after %d retries, giving up", tx_hash, attempts)
            return None
        return TransactionEvidence(transaction=transaction, receipt=receipt)
