"""Marketplace feed poller - OpenSea sale events into the sale pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Sequence

import httpx

from nft_salesbot.chain.logs import ZERO_ADDRESS
from nft_salesbot.interfaces.feed import SaleEventFeed
from nft_salesbot.models.config import WETH_ADDRESS
from nft_salesbot.models.sales import SaleCandidate, SaleSource

if TYPE_CHECKING:
    from nft_salesbot.ingest.pipeline import SalePipeline

log = logging.getLogger(__name__)

_ETH_SYMBOLS = {"ETH", "WETH"}


class MalformedEvent(ValueError):
    """A feed event that cannot become a sale candidate."""


def parse_sale_event(
    event: dict[str, Any],
    contract_addresses: set[str],
    weth_address: str = WETH_ADDRESS,
) -> SaleCandidate:
    """OpenSea v2 `sale` event -> SaleCandidate.

    Raises MalformedEvent when the NFT reference or payment is missing, the
    payment is not ETH/WETH, or the contract is not tracked.
    """
    nft = event.get("nft")
    if not isinstance(nft, dict):
        raise MalformedEvent("no nft reference")
    contract = str(nft.get("contract") or "").lower()
    if not contract:
        raise MalformedEvent("no contract address")
    if contract not in contract_addresses:
        raise MalformedEvent(f"untracked contract {contract}")
    try:
        token_id = int(nft.get("identifier"))
    except (TypeError, ValueError):
        raise MalformedEvent("bad token identifier") from None

    payment = event.get("payment")
    if not isinstance(payment, dict):
        raise MalformedEvent("no payment")
    symbol = str(payment.get("symbol") or "").upper()
    token = str(payment.get("token_address") or "").lower()
    if symbol not in _ETH_SYMBOLS and token not in (ZERO_ADDRESS, weth_address.lower()):
        raise MalformedEvent(f"non-ETH payment {symbol or token}")
    try:
        quantity = int(payment.get("quantity"))
        decimals = int(payment.get("decimals", 18))
    except (TypeError, ValueError):
        raise MalformedEvent("bad payment quantity") from None
    if not 0 <= decimals <= 18:
        raise MalformedEvent(f"unexpected payment decimals {decimals}")

    tx_hash = event.get("transaction")
    order_hash = event.get("order_hash")
    if isinstance(tx_hash, str) and tx_hash:
        source_id = tx_hash.lower()
    elif isinstance(order_hash, str) and order_hash:
        source_id = f"opensea:{order_hash.lower()}"
    else:
        raise MalformedEvent("no transaction or order hash")

    buyer = event.get("buyer")
    timestamp = event.get("event_timestamp")
    return SaleCandidate(
        contract_address=contract,
        token_id=token_id,
        source_id=source_id,
        source=SaleSource.MARKETPLACE_FEED,
        buyer_address=buyer.lower() if isinstance(buyer, str) and buyer else None,
        raw_price_wei=quantity * 10 ** (18 - decimals),
        occurred_at=float(timestamp) if isinstance(timestamp, (int, float)) else None,
    )


class MarketplaceFeedPoller:
    """Polls each configured collection for sales since the watermark."""

    def __init__(
        self,
        feed: SaleEventFeed,
        pipeline: SalePipeline,
        collections: Sequence[str],
        contract_addresses: Sequence[str],
        weth_address: str = WETH_ADDRESS,
        page_limit: int = 50,
        poll_interval: int = 60,
        initial_lookback: int = 3600,
        error_backoff: int = 30,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feed = feed
        self._pipeline = pipeline
        self._collections = list(collections)
        self._contracts = {c.lower() for c in contract_addresses}
        self._weth = weth_address
        self._page_limit = page_limit
        self._poll_interval = poll_interval
        self._error_backoff = error_backoff
        self.last_poll_at: float | None = None
        self.dropped_count = 0

        registry = pipeline.registry
        if registry.watermark is None:
            registry.advance_watermark(clock() - initial_lookback)
        self._clock = clock

    async def poll_once(self) -> int:
        """One cycle over all collections. Returns publications enqueued."""
        registry = self._pipeline.registry
        after = int(registry.watermark or 0)
        enqueued = 0

        for slug in self._collections:
            try:
                events = await self._feed.get_sale_events(slug, after, self._page_limit)
            except (httpx.HTTPError, ValueError) as exc:
                log.warning("Feed request for %s failed: %s", slug, exc)
                continue

            events.sort(key=lambda e: e.get("event_timestamp") or 0)
            log.debug("Feed %s: %d events since %d", slug, len(events), after)

            for event in events:
                timestamp = event.get("event_timestamp")
                if isinstance(timestamp, (int, float)):
                    registry.advance_watermark(float(timestamp))
                try:
                    candidate = parse_sale_event(event, self._contracts, self._weth)
                except MalformedEvent as exc:
                    self.dropped_count += 1
                    log.info("Dropping feed event from %s: %s", slug, exc)
                    continue
                log.debug("Feed sale %s: %s/%d for %s ETH", candidate.source_id,
                          candidate.contract_address, candidate.token_id, candidate.price_eth)
                if await self._pipeline.process_sale(candidate):
                    enqueued += 1

        self.last_poll_at = self._clock()
        if enqueued:
            log.info("Feed poll enqueued %d publications", enqueued)
        return enqueued

    async def run(self) -> None:
        log.info("Feed poller started for %d collections (every %ds)",
                 len(self._collections), self._poll_interval)
        while True:
            try:
                await self.poll_once()
                await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                log.info("Feed poller cancelled")
                break
            except Exception as exc:
                log.error("Feed poller error: %s", exc, exc_info=True)
                await asyncio.sleep(self._error_backoff)
