"""Main daemon - wires all components together and exposes control operations."""

from __future__ import annotations

import asyncio
import logging
import signal
import time
import uuid
from decimal import Decimal
from typing import Awaitable, Callable, Sequence

from nft_salesbot.api.mode import PublicationMode, PublicationModeController
from nft_salesbot.api.status import StatusAggregator
from nft_salesbot.chain.monitor import ChainMonitor, candidate_from_evidence
from nft_salesbot.chain.price import SalePriceExtractor
from nft_salesbot.chain.rpc import AlchemyRpcClient, fetch_evidence
from nft_salesbot.chain.subscription import AlchemyTransactionSubscription
from nft_salesbot.identity.lookups import EnsDataLookup, OpenSeaProfileLookup
from nft_salesbot.identity.resolver import IdentityResolver
from nft_salesbot.ingest.dedup import DedupRegistry
from nft_salesbot.ingest.pipeline import SalePipeline
from nft_salesbot.interfaces import (
    ChainClient,
    MetadataProvider,
    NameLookup,
    PriceProvider,
    Publisher,
    SaleEventFeed,
    TransactionSubscription,
)
from nft_salesbot.metadata.providers import (
    AlchemyMetadataProvider,
    ArtBlocksMetadataProvider,
    OpenSeaMetadataProvider,
)
from nft_salesbot.metadata.resolver import MetadataResolver
from nft_salesbot.models.config import BotConfig
from nft_salesbot.models.records import BotSnapshot, PublicationTask, QueueStatus
from nft_salesbot.models.sales import WEI_PER_ETH, SaleCandidate, SaleSource, TokenMetadata
from nft_salesbot.opensea.client import OpenSeaClient
from nft_salesbot.opensea.feed import MarketplaceFeedPoller
from nft_salesbot.pricing.oracle import PriceOracle
from nft_salesbot.pricing.providers import build_price_providers
from nft_salesbot.publish.formatter import format_status_message
from nft_salesbot.publish.queue import PublicationQueue
from nft_salesbot.publish.twitter import TwitterPublisher

log = logging.getLogger(__name__)


class SalesBotDaemon:
    """NFT sale announcement bot.

    Owns every piece of mutable state (dedup registry, caches, queue) and
    injects it into the components. Collaborators left as None are built
    from the config; a missing API key disables only the parts that need it.
    """

    def __init__(
        self,
        cfg: BotConfig,
        *,
        publisher: Publisher | None = None,
        feed: SaleEventFeed | None = None,
        chain: ChainClient | None = None,
        subscription: TransactionSubscription | None = None,
        metadata_providers: Sequence[MetadataProvider] | None = None,
        price_providers: Sequence[PriceProvider] | None = None,
        name_lookups: Sequence[NameLookup] | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._cfg = cfg
        self._start_time = time.monotonic()
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        creds = cfg.credentials

        opensea: OpenSeaClient | None = None
        if creds.opensea_api_key:
            opensea = OpenSeaClient(
                creds.opensea_api_key, cfg.opensea_api_url, cfg.opensea_chain, cfg.http_timeout,
            )
        else:
            log.warning("No OpenSea API key: marketplace feed and OpenSea lookups disabled")

        if chain is None and creds.alchemy_api_key:
            chain = AlchemyRpcClient(cfg.alchemy_rpc_url)
        if subscription is None and creds.alchemy_api_key:
            subscription = AlchemyTransactionSubscription(
                cfg.alchemy_ws_url, cfg.monitor.subscription, cfg.monitor.reconnect_delay,
            )
        if not creds.alchemy_api_key and chain is None:
            log.warning("No Alchemy API key: chain monitor and Alchemy metadata disabled")

        if publisher is None and creds.has_twitter:
            publisher = TwitterPublisher(
                creds.twitter_consumer_key,
                creds.twitter_consumer_secret,
                creds.twitter_access_token,
                creds.twitter_access_secret,
                base_url=cfg.twitter_api_url,
                timeout=cfg.http_timeout,
            )
        if publisher is None:
            log.warning("No publisher credentials: running in dry-run mode")

        if metadata_providers is None:
            metadata_providers = []
            if opensea is not None:
                metadata_providers.append(OpenSeaMetadataProvider(opensea))
            metadata_providers.append(
                ArtBlocksMetadataProvider(cfg.metadata.artblocks_token_api, cfg.http_timeout)
            )
            if creds.alchemy_api_key:
                metadata_providers.append(AlchemyMetadataProvider(cfg.alchemy_nft_url, cfg.http_timeout))

        if price_providers is None:
            price_providers = build_price_providers(cfg.pricing.providers, cfg.pricing.fiat)

        if name_lookups is None:
            name_lookups = [EnsDataLookup(cfg.ens_api_url)]
            if opensea is not None:
                name_lookups.append(OpenSeaProfileLookup(opensea))

        if feed is None:
            feed = opensea

        # Core components
        self.queue = PublicationQueue(publisher, cfg.publication, clock=clock, sleep=sleep)
        self.registry = DedupRegistry(
            retention=cfg.sales.dedup_retention,
            max_entries=cfg.sales.dedup_max_entries,
            clock=clock,
        )
        self.oracle = PriceOracle(
            price_providers, cfg.pricing.cache_ttl, cfg.pricing.fallback_price, clock=clock,
        )
        self.metadata = MetadataResolver(
            metadata_providers, cfg.metadata, cfg.contracts, clock=clock,
        )
        self.identity = IdentityResolver(name_lookups)
        self.extractor = SalePriceExtractor(cfg.sales.weth_address, cfg.sales.materiality_threshold)
        self.chain = chain
        self.pipeline = SalePipeline(
            self.registry,
            self.extractor,
            self.metadata,
            self.identity,
            self.oracle,
            self.queue,
            chain=chain,
            min_price=cfg.sales.min_price,
            max_length=cfg.publication.max_length,
        )
        self.mode_ctrl = PublicationModeController(self.queue)

        # Ingestion sources
        self.feed: MarketplaceFeedPoller | None = None
        if cfg.feed.enabled and feed is not None:
            if cfg.feed.collections:
                self.feed = MarketplaceFeedPoller(
                    feed,
                    self.pipeline,
                    cfg.feed.collections,
                    cfg.contract_addresses,
                    weth_address=cfg.sales.weth_address,
                    page_limit=cfg.feed.page_limit,
                    poll_interval=cfg.feed.poll_interval,
                    initial_lookback=cfg.feed.initial_lookback,
                    error_backoff=cfg.error_backoff,
                    clock=clock,
                )
            else:
                log.warning("Marketplace feed enabled but no collections configured")

        self.monitor: ChainMonitor | None = None
        if cfg.monitor.enabled and chain is not None and subscription is not None:
            self.monitor = ChainMonitor(
                subscription,
                chain,
                self.pipeline,
                cfg.contract_addresses,
                cfg.monitor.marketplace_addresses,
                receipt_retries=cfg.monitor.receipt_retries,
                receipt_delay=cfg.monitor.receipt_delay,
                sleep=sleep,
            )

        self.status = StatusAggregator(
            self.queue,
            self.pipeline,
            self.metadata,
            self.oracle,
            feed=self.feed,
            monitor=self.monitor,
            poll_interval=cfg.feed.poll_interval,
            start_time=self._start_time,
        )

    # ── Lifecycle ──────────────────────────────────────────

    async def start(self) -> None:
        """Run the queue consumer and ingestion loops until stop()."""
        log.info("Starting nft_salesbot daemon")
        log.info("  Contracts: %d", len(self._cfg.contracts))
        log.info("  Mode: %s", self.mode_ctrl.get_mode().value)
        log.info("  Feed: %s", "enabled" if self.feed else "disabled")
        log.info("  Monitor: %s", "enabled" if self.monitor else "disabled")

        self._stop_event.clear()
        self._tasks = [asyncio.create_task(self.queue.run(), name="publication-queue")]
        if self.feed is not None:
            self._tasks.append(asyncio.create_task(self.feed.run(), name="feed-poller"))
        if self.monitor is not None:
            self._tasks.append(asyncio.create_task(self._monitor_loop(), name="chain-monitor"))

        if self._cfg.publication.announce_on_start and self.queue.publication_enabled:
            self.trigger_test_publication()

        try:
            await self._stop_event.wait()
        finally:
            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            self._tasks = []
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._stop_event.set()

    async def _monitor_loop(self) -> None:
        while True:
            try:
                await self.monitor.run()
                log.warning("Chain monitor subscription ended, restarting")
                await asyncio.sleep(self._cfg.monitor.reconnect_delay)
            except asyncio.CancelledError:
                log.info("Chain monitor cancelled")
                break
            except Exception as exc:
                log.error("Chain monitor error: %s", exc, exc_info=True)
                await asyncio.sleep(self._cfg.error_backoff)

    # ── Control operations ─────────────────────────────────

    def trigger_test_publication(self) -> PublicationTask:
        label = self._cfg.metadata.default_label
        return self.queue.enqueue(format_status_message(label, len(self._cfg.contracts)))

    async def trigger_manual_feed_poll(self) -> int:
        if self.feed is None:
            log.warning("Manual feed poll requested but the feed is disabled")
            return 0
        return await self.feed.poll_once()

    def get_queue_status(self) -> QueueStatus:
        return self.queue.status()

    def set_publication_enabled(self, enabled: bool) -> bool:
        mode = PublicationMode.LIVE if enabled else PublicationMode.DRY_RUN
        return self.mode_ctrl.set_mode(mode)

    def reset_failure_state(self) -> None:
        self.queue.reset_failure_state()

    def clear_cache(self, contract_address: str | None = None, token_id: int | None = None) -> int:
        """Clear one token's metadata, or every cache when no token is given."""
        removed = self.metadata.clear(contract_address, token_id)
        if contract_address is None or token_id is None:
            self.oracle.clear()
            log.info("Cleared all caches (%d metadata entries)", removed)
        else:
            log.info("Cleared metadata for %s/%d", contract_address, token_id)
        return removed

    async def resolve_metadata_for_token(self, contract_address: str, token_id: int) -> TokenMetadata:
        return await self.metadata.resolve(contract_address, token_id)

    async def simulate_sale(
        self,
        contract_address: str,
        token_id: int,
        price: Decimal | str | float,
        buyer_address: str | None,
    ) -> bool:
        """Push a synthetic sale through the full pipeline."""
        candidate = SaleCandidate(
            contract_address=contract_address.lower(),
            token_id=int(token_id),
            source_id=f"manual-{uuid.uuid4().hex}",
            source=SaleSource.MANUAL,
            buyer_address=buyer_address,
            raw_price_wei=int(Decimal(str(price)) * WEI_PER_ETH),
            occurred_at=time.time(),
        )
        return await self.pipeline.process_sale(candidate)

    async def _candidate_for_transaction(self, tx_hash: str) -> SaleCandidate | None:
        if self.chain is None:
            log.warning("No chain client configured; cannot fetch %s", tx_hash)
            return None
        evidence = await fetch_evidence(self.chain, tx_hash.lower())
        if evidence is None:
            return None
        candidate = candidate_from_evidence(evidence, self._cfg.contract_addresses, time.time())
        if candidate is None:
            log.info("Transaction %s moved no tracked token", tx_hash)
        return candidate

    async def process_transaction(self, tx_hash: str) -> bool:
        """Process a historical transaction as if the monitor had seen it."""
        candidate = await self._candidate_for_transaction(tx_hash)
        if candidate is None:
            return False
        return await self.pipeline.process_sale(candidate)

    async def preview_transaction(self, tx_hash: str) -> str | None:
        """The post a transaction would produce, without dedup or enqueue."""
        candidate = await self._candidate_for_transaction(tx_hash)
        if candidate is None:
            return None
        return await self.pipeline.build_message(candidate)

    async def get_base_price(self) -> Decimal:
        return await self.oracle.get_base_price()

    def get_snapshot(self) -> BotSnapshot:
        return self.status.get_snapshot()


async def run_daemon(cfg: BotConfig) -> None:
    """Entry point for running the daemon."""
    daemon = SalesBotDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
