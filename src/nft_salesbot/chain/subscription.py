"""Alchemy websocket subscription for transactions sent to watched contracts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator

import aiohttp

log = logging.getLogger(__name__)

MINED = "alchemy_minedTransactions"
PENDING = "alchemy_pendingTransactions"


def build_subscribe_request(subscription: str, addresses: list[str], request_id: int = 1) -> dict[str, Any]:
    """eth_subscribe payload filtering on transaction recipient, hashes only."""
    addresses = [a.lower() for a in addresses]
    if subscription == PENDING:
        options: dict[str, Any] = {"toAddress": addresses, "hashesOnly": True}
    else:
        options = {"addresses": [{"to": a} for a in addresses], "hashesOnly": True}
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "eth_subscribe",
        "params": [subscription, options],
    }


def parse_notification(message: Any) -> str | None:
    """Transaction hash from an eth_subscription notification.

    Handles pending (bare hash string) and mined ({"transaction": {...}})
    result shapes. Reorged-out transactions (`removed`) are skipped.
    """
    if not isinstance(message, dict) or message.get("method") != "eth_subscription":
        return None
    result = (message.get("params") or {}).get("result")
    if isinstance(result, str):
        return result.lower() if result.startswith("0x") else None
    if not isinstance(result, dict) or result.get("removed"):
        return None
    tx = result.get("transaction") if isinstance(result.get("transaction"), dict) else result
    tx_hash = tx.get("hash")
    if isinstance(tx_hash, str) and tx_hash.startswith("0x"):
        return tx_hash.lower()
    return None


class AlchemyTransactionSubscription:
    """Yields transaction hashes forever, reconnecting after a fixed delay.

    The websocket URL embeds the API key and is never logged.
    """

    def __init__(
        self,
        ws_url: str,
        subscription: str = MINED,
        reconnect_delay: float = 10.0,
        heartbeat: float = 30.0,
    ) -> None:
        self._url = ws_url
        self._subscription = subscription
        self._reconnect_delay = reconnect_delay
        self._heartbeat = heartbeat
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def hashes(self, addresses: list[str]) -> AsyncIterator[str]:
        request = build_subscribe_request(self._subscription, addresses)
        while True:
            try:
                async with aiohttp.ClientSession() as session:
                    async with session.ws_connect(self._url, heartbeat=self._heartbeat) as ws:
                        await ws.send_json(request)
                        self._connected = True
                        log.info("Subscribed to %s for %d addresses",
                                 self._subscription, len(addresses))
                        async for msg in ws:
                            if msg.type == aiohttp.WSMsgType.TEXT:
                                reply = msg.json()
                                is_reply = isinstance(reply, dict) and reply.get("id") == request["id"]
                                if is_reply and reply.get("error"):
                                    log.error("Subscription rejected: %s", reply["error"])
                                    break
                                tx_hash = parse_notification(reply)
                                if tx_hash:
                                    yield tx_hash
                            elif msg.type == aiohttp.WSMsgType.ERROR:
                                log.warning("Websocket error: %s", ws.exception())
                                break
                log.warning("Websocket closed")
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
                log.warning("Websocket connection failed: %s", type(exc).__name__)
            finally:
                self._connected = False

            log.info("Reconnecting in %.0fs", self._reconnect_delay)
            await asyncio.sleep(self._reconnect_delay)
