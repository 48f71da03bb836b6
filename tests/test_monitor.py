"""Tests for the chain monitor, its subscription protocol and the RPC client."""

from __future__ import annotations

import json

import httpx
import pytest

from nft_salesbot.chain.monitor import ChainMonitor, candidate_from_evidence
from nft_salesbot.chain.rpc import AlchemyRpcClient, RpcError
from nft_salesbot.chain.subscription import (
    MINED,
    PENDING,
    build_subscribe_request,
    parse_notification,
)
from nft_salesbot.models.config import SEAPORT_ADDRESS
from nft_salesbot.models.sales import SaleSource, TransactionEvidence

from tests.factories import (
    BUYER,
    ETH,
    FLAGSHIP_V0,
    FLAGSHIP_V3,
    TX_HASH,
    make_evidence,
    make_nft_transfer_log,
    make_receipt,
    make_transaction,
)
from tests.mocks import MockSubscription


def _monitor(subscription, mock_chain, pipeline, **kwargs) -> ChainMonitor:
    return ChainMonitor(subscription, mock_chain, pipeline, [FLAGSHIP_V0], [SEAPORT_ADDRESS], **kwargs)


# ── Candidate extraction ─────────────────────────────────────


def test_candidate_from_evidence():
    evidence = make_evidence(make_transaction(value=ETH), make_nft_transfer_log())
    candidate = candidate_from_evidence(evidence, [FLAGSHIP_V0])
    assert candidate.source == SaleSource.CHAIN_MONITOR
    assert candidate.source_id == TX_HASH
    assert candidate.token_id == 1506
    assert candidate.buyer_address == BUYER
    assert candidate.raw_price_wei is None


def test_reverted_transaction_is_not_a_sale():
    evidence = TransactionEvidence(
        make_transaction(value=ETH), make_receipt(make_nft_transfer_log(), status=0),
    )
    assert candidate_from_evidence(evidence, [FLAGSHIP_V0]) is None


def test_untracked_transfer_is_not_a_sale():
    evidence = make_evidence(make_transaction(), make_nft_transfer_log(contract=FLAGSHIP_V3))
    assert candidate_from_evidence(evidence, [FLAGSHIP_V0]) is None


# ── Monitor ──────────────────────────────────────────────────


async def test_handle_transaction_enqueues_sale(mock_chain, pipeline, queue):
    mock_chain.add(make_transaction(value=2 * ETH), make_receipt(make_nft_transfer_log()))
    monitor = _monitor(MockSubscription(), mock_chain, pipeline)

    assert await monitor.handle_transaction(TX_HASH.upper().replace("0X", "0x"))
    assert "sold for 2.00 ETH" in queue.pending[0].text


async def test_unknown_transaction_is_ignored(mock_chain, pipeline, queue):
    monitor = _monitor(MockSubscription(), mock_chain, pipeline)
    assert await monitor.handle_transaction(TX_HASH) is False
    assert not pipeline.seen(TX_HASH)


async def test_transaction_without_tracked_transfer(mock_chain, pipeline, queue):
    mock_chain.add(make_transaction(value=ETH), make_receipt())
    monitor = _monitor(MockSubscription(), mock_chain, pipeline)
    assert await monitor.handle_transaction(TX_HASH) is False
    assert len(queue) == 0


async def test_pending_transaction_waits_for_receipt(mock_chain, pipeline, queue):
    """The receipt appears while the monitor is polling for it."""
    tx = make_transaction(value=2 * ETH)
    mock_chain.transactions[tx.hash] = tx
    delays = []

    async def mine_after_first_poll(seconds):
        delays.append(seconds)
        mock_chain.receipts[tx.hash] = make_receipt(make_nft_transfer_log())

    monitor = _monitor(MockSubscription(), mock_chain, pipeline,
                       receipt_delay=3.0, sleep=mine_after_first_poll)

    assert await monitor.handle_transaction(TX_HASH)
    assert delays == [3.0]
    assert len(queue) == 1


async def test_receipt_wait_is_bounded(mock_chain, pipeline, queue):
    tx = make_transaction(value=2 * ETH)
    mock_chain.transactions[tx.hash] = tx
    delays = []

    async def record(seconds):
        delays.append(seconds)

    monitor = _monitor(MockSubscription(), mock_chain, pipeline,
                       receipt_retries=3, receipt_delay=1.0, sleep=record)

    assert await monitor.handle_transaction(TX_HASH) is False
    assert delays == [1.0, 1.0, 1.0]
    assert not pipeline.seen(TX_HASH)
    assert len(queue) == 0


async def test_run_subscribes_and_skips_seen_hashes(mock_chain, pipeline, queue):
    mock_chain.add(make_transaction(value=2 * ETH), make_receipt(make_nft_transfer_log()))
    subscription = MockSubscription([TX_HASH, TX_HASH])
    monitor = _monitor(subscription, mock_chain, pipeline)

    await monitor.run()

    assert subscription.subscribed_to == [FLAGSHIP_V0, SEAPORT_ADDRESS]
    assert len(queue) == 1
    assert mock_chain.get_calls == [TX_HASH]
    assert monitor.transactions_seen == 2
    assert monitor.connected


# ── Subscription protocol ────────────────────────────────────


def test_mined_subscribe_request():
    request = build_subscribe_request(MINED, [FLAGSHIP_V0.upper().replace("0X", "0x")])
    assert request["method"] == "eth_subscribe"
    assert request["params"] == [MINED, {"addresses": [{"to": FLAGSHIP_V0}], "hashesOnly": True}]


def test_pending_subscribe_request():
    request = build_subscribe_request(PENDING, [FLAGSHIP_V0])
    assert request["params"][1] == {"toAddress": [FLAGSHIP_V0], "hashesOnly": True}


@pytest.mark.parametrize("result, expected", [
    (TX_HASH, TX_HASH),
    ({"removed": False, "transaction": {"hash": TX_HASH.upper().replace("0X", "0x")}}, TX_HASH),
    ({"removed": True, "transaction": {"hash": TX_HASH}}, None),
    ({"hash": TX_HASH}, TX_HASH),
    ("not-a-hash", None),
])
def test_parse_notification(result, expected):
    message = {"jsonrpc": "2.0", "method": "eth_subscription",
               "params": {"subscription": "0x1", "result": result}}
    assert parse_notification(message) == expected


def test_parse_notification_ignores_replies():
    assert parse_notification({"jsonrpc": "2.0", "id": 1, "result": "0xsub"}) is None


# ── RPC client ───────────────────────────────────────────────


def _rpc_handler(results):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        reply = results[body["method"]]
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **reply})
    return handler


async def test_rpc_client_parses_transaction_and_receipt():
    client = AlchemyRpcClient("https://rpc.example/v2/key", transport=httpx.MockTransport(_rpc_handler({
        "eth_getTransactionByHash": {"result": {
            "hash": TX_HASH, "from": BUYER, "to": SEAPORT_ADDRESS, "value": hex(2 * ETH),
        }},
        "eth_getTransactionReceipt": {"result": {
            "transactionHash": TX_HASH, "status": "0x1",
            "logs": [{"address": FLAGSHIP_V0, "topics": ["0xAB"], "data": "0x"}],
        }},
    })))

    tx = await client.get_transaction(TX_HASH)
    receipt = await client.get_receipt(TX_HASH)

    assert tx.value == 2 * ETH
    assert tx.to_address == SEAPORT_ADDRESS
    assert receipt.status == 1
    assert receipt.logs[0].topics == ("0xab",)


async def test_rpc_client_null_result_is_none():
    client = AlchemyRpcClient("https://rpc.example/v2/key", transport=httpx.MockTransport(
        _rpc_handler({"eth_getTransactionByHash": {"result": None}}),
    ))
    assert await client.get_transaction(TX_HASH) is None


async def test_rpc_client_error_raises():
    client = AlchemyRpcClient("https://rpc.example/v2/key", transport=httpx.MockTransport(
        _rpc_handler({"eth_getTransactionReceipt": {"error": {"code": -32000, "message": "boom"}}}),
    ))
    with pytest.raises(RpcError, match="boom"):
        await client.get_receipt(TX_HASH)
