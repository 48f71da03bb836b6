"""Status aggregator - builds health snapshots from component state."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from nft_salesbot.chain.monitor import ChainMonitor
from nft_salesbot.ingest.pipeline import SalePipeline
from nft_salesbot.metadata.resolver import MetadataResolver
from nft_salesbot.models.records import BotSnapshot
from nft_salesbot.opensea.feed import MarketplaceFeedPoller
from nft_salesbot.pricing.oracle import PriceOracle
from nft_salesbot.publish.queue import PublicationQueue

log = logging.getLogger(__name__)

# A feed that has not completed a poll for this many intervals is stale
STALE_POLL_FACTOR = 3


class StatusAggregator:
    """Builds BotSnapshot views for the control surface.

    The snapshot separates "nothing is selling" from "something is broken":
    each detected problem is listed in `degraded_reasons`.
    """

    def __init__(
        self,
        queue: PublicationQueue,
        pipeline: SalePipeline,
        metadata: MetadataResolver,
        oracle: PriceOracle,
        feed: MarketplaceFeedPoller | None = None,
        monitor: ChainMonitor | None = None,
        poll_interval: int = 60,
        start_time: float | None = None,
    ) -> None:
        self._queue = queue
        self._pipeline = pipeline
        self._metadata = metadata
        self._oracle = oracle
        self._feed = feed
        self._monitor = monitor
        self._poll_interval = poll_interval
        self._start_time = start_time or time.monotonic()

    def get_snapshot(self) -> BotSnapshot:
        now = time.time()
        queue = self._queue.status()
        registry = self._pipeline.registry
        quote = self._oracle.cached_quote

        reasons: list[str] = []
        if not self._queue.publisher_configured:
            reasons.append("no publisher credentials (dry-run only)")
        if queue.failure_count:
            reasons.append(f"{queue.failure_count} consecutive publish failures")
        if queue.rate_limited_until:
            reasons.append(f"rate limited until {queue.rate_limited_until}")
        if self._monitor is not None and not self._monitor.connected:
            reasons.append("chain monitor disconnected")
        if self._feed is not None:
            last = self._feed.last_poll_at
            if last is not None and now - last > STALE_POLL_FACTOR * self._poll_interval:
                reasons.append("marketplace feed stale")
        if self._feed is None and self._monitor is None:
            reasons.append("no ingestion source enabled")

        watermark = registry.watermark
        return BotSnapshot(
            uptime_seconds=int(time.monotonic() - self._start_time),
            queue=queue,
            feed_enabled=self._feed is not None,
            monitor_enabled=self._monitor is not None,
            monitor_connected=self._monitor.connected if self._monitor else False,
            publisher_configured=self._queue.publisher_configured,
            processed_sales=self._pipeline.enqueued_count,
            dedup_size=len(registry),
            watermark=(
                datetime.fromtimestamp(watermark, tz=timezone.utc).isoformat()
                if watermark is not None else None
            ),
            metadata_cache_size=self._metadata.cache_size,
            base_price=str(quote.value) if quote else None,
            degraded_reasons=reasons,
        )
