"""Tests for the sale pipeline: idempotence, cross-feed dedup, price floor."""

from __future__ import annotations

import asyncio

from nft_salesbot.models.sales import SaleSource

from tests.factories import (
    BUYER,
    ETH,
    TX_HASH,
    make_candidate,
    make_evidence,
    make_nft_transfer_log,
    make_receipt,
    make_transaction,
    make_weth_transfer_log,
)


async def test_process_sale_enqueues_formatted_post(pipeline, queue):
    assert await pipeline.process_sale(make_candidate(price_wei=2 * ETH))

    assert len(queue) == 1
    text = queue.pending[0].text
    assert text.startswith("Chromie Squiggle #1506 by Snowfro\n")
    assert "sold for 2.00 ETH ($4,000.00)" in text
    assert "to collector.eth" in text
    assert text.endswith("/1506")


async def test_process_sale_is_idempotent(pipeline, queue):
    candidate = make_candidate()
    assert await pipeline.process_sale(candidate) is True
    assert await pipeline.process_sale(candidate) is False
    assert len(queue) == 1


async def test_same_transaction_from_both_feeds(pipeline, queue, mock_chain):
    """Feed and monitor report the same hash: only the first is published."""
    feed_candidate = make_candidate(source=SaleSource.MARKETPLACE_FEED)
    evidence = make_evidence(
        make_transaction(value=2 * ETH), make_nft_transfer_log(),
    )
    monitor_candidate = make_candidate(
        source=SaleSource.CHAIN_MONITOR, price_wei=None, evidence=evidence,
    )

    assert await pipeline.process_sale(feed_candidate) is True
    assert await pipeline.process_sale(monitor_candidate) is False
    assert len(queue) == 1


async def test_below_floor_is_skipped_and_stays_claimed(pipeline, queue):
    candidate = make_candidate(price_wei=ETH // 10_000)
    assert await pipeline.process_sale(candidate) is False
    assert len(queue) == 0
    assert pipeline.seen(candidate.source_id)
    assert pipeline.skipped_count == 1


async def test_zero_price_is_skipped(pipeline, queue):
    assert await pipeline.process_sale(make_candidate(price_wei=0)) is False
    assert len(queue) == 0


async def test_price_extracted_from_evidence(pipeline, queue, mock_chain):
    evidence = make_evidence(
        make_transaction(value=0),
        make_weth_transfer_log(5 * ETH // 2),
        make_nft_transfer_log(),
    )
    candidate = make_candidate(price_wei=None, evidence=evidence)

    assert await pipeline.process_sale(candidate)
    assert "sold for 2.50 ETH" in queue.pending[0].text
    assert mock_chain.get_calls == []


async def test_price_fetched_by_hash_when_no_evidence(pipeline, queue, mock_chain):
    tx = make_transaction(value=3 * ETH)
    mock_chain.add(tx, make_receipt(make_nft_transfer_log()))

    assert await pipeline.process_sale(make_candidate(price_wei=None))
    assert mock_chain.get_calls == [TX_HASH]
    assert "sold for 3.00 ETH" in queue.pending[0].text


async def test_missing_evidence_releases_claim(pipeline, queue, mock_chain):
    candidate = make_candidate(price_wei=None)
    assert await pipeline.process_sale(candidate) is False
    assert not pipeline.seen(candidate.source_id)


async def test_unexpected_error_releases_claim(pipeline, queue, mock_metadata_provider):
    async def broken_resolve(contract, token_id):
        raise RuntimeError("boom")

    pipeline._metadata.resolve = broken_resolve
    candidate = make_candidate()

    assert await pipeline.process_sale(candidate) is False
    assert not pipeline.seen(candidate.source_id)
    assert len(queue) == 0


async def test_unknown_buyer_is_truncated(pipeline, queue):
    other = "0x3333333333333333333333333333333333334444"
    await pipeline.process_sale(make_candidate(buyer=other))
    assert "to 0x3333…4444" in queue.pending[0].text


async def test_build_message_does_not_claim_or_enqueue(pipeline, queue):
    candidate = make_candidate()
    text = await pipeline.build_message(candidate)
    assert "Chromie Squiggle" in text
    assert not pipeline.seen(candidate.source_id)
    assert len(queue) == 0


async def test_missing_buyer_shows_unknown(pipeline, queue):
    await pipeline.process_sale(make_candidate(buyer=None))
    assert "to Unknown" in queue.pending[0].text
    assert BUYER not in queue.pending[0].text


async def test_concurrent_reports_publish_once(pipeline, queue, mock_metadata_provider):
    """Both feeds report the same sale while the first is still enriching."""
    mock_metadata_provider.delay = 0
    feed_candidate = make_candidate(source=SaleSource.MARKETPLACE_FEED)
    monitor_candidate = make_candidate(source=SaleSource.CHAIN_MONITOR)

    results = await asyncio.gather(
        pipeline.process_sale(feed_candidate),
        pipeline.process_sale(monitor_candidate),
    )

    assert sorted(results) == [False, True]
    assert len(queue) == 1
    assert len(mock_metadata_provider.fetch_calls) == 1
