"""Sale pipeline - the single idempotent entry point for both feeds."""

from __future__ import annotations

import logging
from decimal import Decimal

from nft_salesbot.chain.price import SalePriceExtractor
from nft_salesbot.chain.rpc import fetch_evidence
from nft_salesbot.identity.resolver import IdentityResolver
from nft_salesbot.ingest.dedup import DedupRegistry
from nft_salesbot.interfaces.chain import ChainClient
from nft_salesbot.metadata.resolver import MetadataResolver
from nft_salesbot.models.sales import WEI_PER_ETH, SaleCandidate
from nft_salesbot.pricing.oracle import PriceOracle
from nft_salesbot.publish.formatter import format_sale_message
from nft_salesbot.publish.queue import PublicationQueue

log = logging.getLogger(__name__)


class EvidenceUnavailable(Exception):
    """The transaction or its receipt could not be fetched yet."""


class SalePipeline:
    """Claim, price, enrich, format and enqueue one sale.

    A candidate's `source_id` is claimed in the dedup registry before any
    I/O, so the marketplace feed and the chain monitor can both report the
    same transaction and only the first report is published.
    """

    def __init__(
        self,
        registry: DedupRegistry,
        extractor: SalePriceExtractor,
        metadata: MetadataResolver,
        identity: IdentityResolver,
        oracle: PriceOracle | None,
        queue: PublicationQueue,
        chain: ChainClient | None = None,
        min_price: Decimal = Decimal("0.001"),
        max_length: int = 280,
    ) -> None:
        self._registry = registry
        self._extractor = extractor
        self._metadata = metadata
        self._identity = identity
        self._oracle = oracle
        self._queue = queue
        self._chain = chain
        self._min_price = min_price
        self._max_length = max_length
        self.enqueued_count = 0
        self.skipped_count = 0

    @property
    def registry(self) -> DedupRegistry:
        return self._registry

    def seen(self, source_id: str) -> bool:
        return self._registry.contains(source_id)

    async def process_sale(self, candidate: SaleCandidate) -> bool:
        """Returns True if a publication task was enqueued."""
        if not self._registry.claim(candidate.source_id):
            log.debug("Duplicate %s from %s, skipping",
                      candidate.source_id, candidate.source.value)
            return False

        try:
            text = await self.build_message(candidate)
        except EvidenceUnavailable as exc:
            self._registry.release(candidate.source_id)
            log.warning("No evidence for %s yet: %s", candidate.source_id, exc)
            return False
        except Exception:
            self._registry.release(candidate.source_id)
            log.error("Failed to process sale %s", candidate.source_id, exc_info=True)
            return False

        if text is None:
            self.skipped_count += 1
            return False

        self._queue.enqueue(text)
        self.enqueued_count += 1
        return True

    async def resolve_price_wei(self, candidate: SaleCandidate) -> int:
        if candidate.raw_price_wei is not None:
            return candidate.raw_price_wei

        evidence = candidate.evidence
        if evidence is None:
            if self._chain is None:
                raise EvidenceUnavailable("no chain client configured")
            evidence = await fetch_evidence(self._chain, candidate.source_id)
            if evidence is None:
                raise EvidenceUnavailable(candidate.source_id)

        return self._extractor.extract_price_wei(
            evidence.transaction,
            evidence.receipt,
            nft=(candidate.contract_address, candidate.token_id),
        )

    async def build_message(self, candidate: SaleCandidate) -> str | None:
        """Formatted post for a candidate, or None if it is below the floor.

        No dedup and no enqueue; previews use this directly.
        """
        price_wei = await self.resolve_price_wei(candidate)
        price_eth = Decimal(price_wei) / WEI_PER_ETH
        if price_wei <= 0 or price_eth < self._min_price:
            log.info("Sale %s at %s ETH is below the %s ETH floor, skipping",
                     candidate.source_id, price_eth, self._min_price)
            return None

        metadata = await self._metadata.resolve(candidate.contract_address, candidate.token_id)

        fiat = None
        if self._oracle is not None:
            fiat = price_eth * await self._oracle.get_base_price()

        buyer = await self._identity.resolve_display_name(candidate.buyer_address)

        log.info("Sale %s: %s #%d for %s ETH to %s (%s)",
                 candidate.source_id, metadata.project_name, metadata.edition_number,
                 price_eth, buyer, candidate.source.value)
        return format_sale_message(metadata, price_eth, fiat, buyer, max_length=self._max_length)
