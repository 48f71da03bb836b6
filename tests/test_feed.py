"""Tests for the marketplace feed: event parsing and the poll cycle."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest

from nft_salesbot.chain.logs import ZERO_ADDRESS
from nft_salesbot.models.config import WETH_ADDRESS
from nft_salesbot.models.sales import SaleSource
from nft_salesbot.opensea.client import OpenSeaClient
from nft_salesbot.opensea.feed import MalformedEvent, MarketplaceFeedPoller, parse_sale_event

from tests.factories import BUYER, ETH, FLAGSHIP_V0, FLAGSHIP_V3, TX_HASH, make_opensea_event

SLUG = "chromie-squiggle-by-snowfro"
TRACKED = {FLAGSHIP_V0}


# ── Event parsing ────────────────────────────────────────────


def test_parse_eth_sale():
    candidate = parse_sale_event(make_opensea_event(quantity=3 * ETH), TRACKED)
    assert candidate.contract_address == FLAGSHIP_V0
    assert candidate.token_id == 1506
    assert candidate.source_id == TX_HASH
    assert candidate.source == SaleSource.MARKETPLACE_FEED
    assert candidate.raw_price_wei == 3 * ETH
    assert candidate.price_eth == Decimal(3)
    assert candidate.buyer_address == BUYER
    assert candidate.occurred_at == 1_700_000_000.0


def test_parse_weth_sale_by_token_address():
    event = make_opensea_event(symbol="", token_address=WETH_ADDRESS.upper().replace("0X", "0x"))
    assert parse_sale_event(event, TRACKED).raw_price_wei == 2 * ETH


def test_parse_contract_address_case_insensitive():
    event = make_opensea_event(contract=FLAGSHIP_V0.upper().replace("0X", "0x"))
    assert parse_sale_event(event, TRACKED).contract_address == FLAGSHIP_V0


def test_parse_scales_decimals():
    event = make_opensea_event(quantity=15)
    event["payment"]["decimals"] = 1
    assert parse_sale_event(event, TRACKED).raw_price_wei == 15 * 10**17


def test_parse_falls_back_to_order_hash():
    candidate = parse_sale_event(make_opensea_event(tx_hash=None), TRACKED)
    assert candidate.source_id == "opensea:0x" + "ef" * 32


@pytest.mark.parametrize("mutate", [
    lambda e: e.pop("nft"),
    lambda e: e["nft"].update(identifier="abc"),
    lambda e: e["nft"].update(contract=FLAGSHIP_V3),
    lambda e: e.pop("payment"),
    lambda e: e["payment"].update(symbol="USDC", token_address="0x" + "a0" * 20),
    lambda e: e["payment"].update(quantity=None),
    lambda e: e["payment"].update(decimals=30),
    lambda e: e.update(transaction=None, order_hash=None),
])
def test_malformed_events_rejected(mutate):
    event = make_opensea_event()
    mutate(event)
    with pytest.raises(MalformedEvent):
        parse_sale_event(event, TRACKED)


# ── Poll cycle ───────────────────────────────────────────────


def _poller(mock_feed, pipeline, clock, **kwargs) -> MarketplaceFeedPoller:
    return MarketplaceFeedPoller(
        mock_feed, pipeline, [SLUG], [FLAGSHIP_V0], clock=clock, **kwargs,
    )


async def test_initial_watermark_uses_lookback(mock_feed, pipeline, clock):
    _poller(mock_feed, pipeline, clock, initial_lookback=600)
    assert pipeline.registry.watermark == clock.now - 600


async def test_poll_enqueues_and_advances_watermark(mock_feed, pipeline, queue, clock):
    poller = _poller(mock_feed, pipeline, clock)
    start_after = int(pipeline.registry.watermark)
    mock_feed.stage(
        SLUG,
        make_opensea_event(token_id=2, tx_hash="0x" + "02" * 32, timestamp=int(clock.now) + 20),
        make_opensea_event(token_id=1, tx_hash="0x" + "01" * 32, timestamp=int(clock.now) + 10),
    )

    assert await poller.poll_once() == 2

    assert mock_feed.requests == [(SLUG, start_after, 50)]
    assert pipeline.registry.watermark == clock.now + 20
    assert [t.text.split("\n")[0] for t in queue.pending] == [
        "Chromie Squiggle #1 by Snowfro",
        "Chromie Squiggle #2 by Snowfro",
    ]
    assert poller.last_poll_at == clock.now


async def test_repeated_event_is_published_once(mock_feed, pipeline, queue, clock):
    poller = _poller(mock_feed, pipeline, clock)
    event = make_opensea_event()
    mock_feed.stage(SLUG, event)
    await poller.poll_once()
    mock_feed.stage(SLUG, event)
    assert await poller.poll_once() == 0
    assert len(queue) == 1
    assert mock_feed.requests[1][1] == event["event_timestamp"]


async def test_malformed_event_is_dropped(mock_feed, pipeline, queue, clock):
    poller = _poller(mock_feed, pipeline, clock)
    mock_feed.stage(SLUG, make_opensea_event(contract=FLAGSHIP_V3))
    assert await poller.poll_once() == 0
    assert poller.dropped_count == 1
    assert len(queue) == 0


async def test_feed_error_is_retried_next_cycle(mock_feed, pipeline, clock):
    poller = _poller(mock_feed, pipeline, clock)
    mock_feed.error = httpx.ConnectError("unreachable")
    assert await poller.poll_once() == 0
    assert poller.last_poll_at == clock.now


async def test_opensea_client_sale_events_request():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["params"] = dict(request.url.params)
        captured["key"] = request.headers.get("X-API-KEY")
        return httpx.Response(200, json={"asset_events": [make_opensea_event(), "junk"]})

    client = OpenSeaClient("secret", transport=httpx.MockTransport(handler))
    events = await client.get_sale_events(SLUG, after=1_700_000_000, limit=20)

    assert captured["path"] == f"/api/v2/events/collection/{SLUG}"
    assert captured["params"] == {"event_type": "sale", "after": "1700000000", "limit": "20"}
    assert captured["key"] == "secret"
    assert len(events) == 1
    assert events[0]["payment"]["token_address"] == ZERO_ADDRESS
