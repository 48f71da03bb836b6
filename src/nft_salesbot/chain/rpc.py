"""Alchemy JSON-RPC client for transaction and receipt lookups."""

from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx

from nft_salesbot.chain.logs import parse_receipt, parse_transaction
from nft_salesbot.http import HttpProvider
from nft_salesbot.interfaces.chain import ChainClient
from nft_salesbot.models.sales import Receipt, Transaction, TransactionEvidence

log = logging.getLogger(__name__)


class RpcError(Exception):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, error: Any) -> None:
        self.method = method
        self.error = error
        message = error.get("message") if isinstance(error, dict) else error
        super().__init__(f"{method}: {message}")


class AlchemyRpcClient(HttpProvider):
    """Ethereum JSON-RPC over HTTPS.

    The endpoint URL embeds the API key and must never be logged. Transport
    and RPC errors propagate; a null result (unknown hash) returns None.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(rpc_url, timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        data = await self._post_json("", payload)
        if not isinstance(data, dict):
            raise RpcError(method, "malformed response")
        if data.get("error"):
            raise RpcError(method, data["error"])
        return data.get("result")

    async def get_transaction(self, tx_hash: str) -> Transaction | None:
        result = await self._rpc("eth_getTransactionByHash", [tx_hash])
        return parse_transaction(result) if isinstance(result, dict) else None

    async def get_receipt(self, tx_hash: str) -> Receipt | None:
        result = await self._rpc("eth_getTransactionReceipt", [tx_hash])
        return parse_receipt(result) if isinstance(result, dict) else None


async def fetch_evidence(chain: ChainClient, tx_hash: str) -> TransactionEvidence | None:
    """Transaction and receipt together, or None if either is missing."""
    transaction = await chain.get_transaction(tx_hash)
    if transaction is None:
        log.debug("Transaction %s not found", tx_hash)
        return None
    receipt = await chain.get_receipt(tx_hash)
    if receipt is None:
        log.debug("Receipt for %s not available yet", tx_hash)
        return None
    return TransactionEvidence(transaction=transaction, receipt=receipt)
