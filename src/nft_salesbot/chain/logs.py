"""Ethereum log and JSON-RPC payload decoding.

Only the handful of ABI shapes the bot reads are decoded here: ERC-20/721
`Transfer` and Seaport `OrderFulfilled`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nft_salesbot.models.sales import LogEntry, Receipt, Transaction

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
ORDER_FULFILLED_TOPIC = "0x9d9af8e38d66c62e2c12f0225249fd9d721c54b83f48d9352c97c6cacdcb6f31"
ZERO_ADDRESS = "0x" + "0" * 40

WORD = 64  # hex chars per 32-byte ABI word


class ItemType:
    """Seaport item types."""

    NATIVE = 0
    ERC20 = 1
    ERC721 = 2
    ERC1155 = 3
    ERC721_WITH_CRITERIA = 4
    ERC1155_WITH_CRITERIA = 5


@dataclass(frozen=True)
class SeaportItem:
    """A SpentItem (offer) or ReceivedItem (consideration)."""

    item_type: int
    token: str
    identifier: int
    amount: int
    recipient: str | None = None


@dataclass(frozen=True)
class OrderFulfilled:
    order_hash: str
    recipient: str
    offer: tuple[SeaportItem, ...]
    consideration: tuple[SeaportItem, ...]


@dataclass(frozen=True)
class TokenTransfer:
    """An ERC-721 Transfer out of a receipt."""

    contract_address: str
    from_address: str
    to_address: str
    token_id: int


def hex_to_int(value: Any) -> int:
    """Parse a 0x-prefixed quantity. Empty data ("0x") is zero."""
    if isinstance(value, int):
        return value
    text = str(value or "").strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    return int(text, 16) if text else 0


def topic_to_address(topic: str) -> str:
    """Last 20 bytes of a 32-byte topic, as a lowercase address."""
    return "0x" + topic[-40:].lower()


def _strip(data: str) -> str:
    return data[2:] if data.startswith("0x") else data


def _word(payload: str, index: int) -> str:
    chunk = payload[index * WORD:(index + 1) * WORD]
    if len(chunk) != WORD:
        raise ValueError(f"ABI payload too short for word {index}")
    return chunk


def _word_int(payload: str, index: int) -> int:
    return int(_word(payload, index), 16)


def _word_address(payload: str, index: int) -> str:
    return "0x" + _word(payload, index)[-40:].lower()


def _read_items(payload: str, offset_bytes: int, width: int) -> tuple[SeaportItem, ...]:
    if offset_bytes % 32:
        raise ValueError("Unaligned array offset")
    start = offset_bytes // 32
    count = _word_int(payload, start)
    if count > 1000:
        raise ValueError(f"Implausible array length {count}")
    items = []
    for i in range(count):
        base = start + 1 + i * width
        items.append(SeaportItem(
            item_type=_word_int(payload, base),
            token=_word_address(payload, base + 1),
            identifier=_word_int(payload, base + 2),
            amount=_word_int(payload, base + 3),
            recipient=_word_address(payload, base + 4) if width == 5 else None,
        ))
    return tuple(items)


def decode_order_fulfilled(data: str) -> OrderFulfilled:
    """Decode the non-indexed part of a Seaport OrderFulfilled log.

    Layout: orderHash, recipient, offset(offer: SpentItem[4 words]),
    offset(consideration: ReceivedItem[5 words]). Raises ValueError when
    the payload does not fit that layout.
    """
    payload = _strip(data)
    if len(payload) % WORD:
        raise ValueError("ABI payload is not word aligned")
    return OrderFulfilled(
        order_hash="0x" + _word(payload, 0),
        recipient=_word_address(payload, 1),
        offer=_read_items(payload, _word_int(payload, 2), 4),
        consideration=_read_items(payload, _word_int(payload, 3), 5),
    )


def sniff_zero_address_amount(data: str) -> int:
    """Best-effort amount from an undecodable settlement payload.

    Finds the first zero-address pattern and reads the 32-byte word that
    starts 64 hex chars later. Returns 0 when nothing plausible is found.
    """
    payload = _strip(data)
    pos = payload.find("0" * 40)
    if pos < 0:
        return 0
    chunk = payload[pos + WORD:pos + 2 * WORD]
    if not chunk:
        return 0
    try:
        return int(chunk, 16)
    except ValueError:
        return 0


def find_token_transfer(receipt: Receipt, contracts: set[str] | list[str]) -> TokenTransfer | None:
    """The last ERC-721 Transfer emitted by one of `contracts`.

    Token id is read from topic 3 (indexed) or from the data word when the
    contract does not index it.
    """
    tracked = {c.lower() for c in contracts}
    transfers = [
        entry for entry in receipt.logs
        if entry.address in tracked
        and entry.topics
        and entry.topics[0] == TRANSFER_TOPIC
        and len(entry.topics) >= 3
    ]
    if not transfers:
        return None
    entry = transfers[-1]
    token_id = hex_to_int(entry.topics[3]) if len(entry.topics) > 3 else hex_to_int(entry.data)
    return TokenTransfer(
        contract_address=entry.address,
        from_address=topic_to_address(entry.topics[1]),
        to_address=topic_to_address(entry.topics[2]),
        token_id=token_id,
    )


# ── JSON-RPC payloads ────────────────────────────────────────


def parse_log(raw: dict[str, Any]) -> LogEntry:
    return LogEntry(
        address=str(raw.get("address") or "").lower(),
        topics=tuple(str(t).lower() for t in raw.get("topics") or []),
        data=str(raw.get("data") or "0x"),
    )


def parse_transaction(raw: dict[str, Any]) -> Transaction:
    """eth_getTransactionByHash result -> Transaction."""
    to_address = raw.get("to")
    return Transaction(
        hash=str(raw["hash"]).lower(),
        from_address=str(raw.get("from") or "").lower(),
        to_address=str(to_address).lower() if to_address else None,
        value=hex_to_int(raw.get("value")),
        input=str(raw.get("input") or "0x"),
    )


def parse_receipt(raw: dict[str, Any]) -> Receipt:
    """eth_getTransactionReceipt result -> Receipt."""
    return Receipt(
        transaction_hash=str(raw["transactionHash"]).lower(),
        logs=tuple(parse_log(entry) for entry in raw.get("logs") or [] if isinstance(entry, dict)),
        status=hex_to_int(raw.get("status", "0x1")),
    )
