"""Synthetic transaction, log and event factories for testing."""

from __future__ import annotations

from typing import Any

from nft_salesbot.chain.logs import ORDER_FULFILLED_TOPIC, TRANSFER_TOPIC, ZERO_ADDRESS
from nft_salesbot.models.config import SEAPORT_ADDRESS, WETH_ADDRESS
from nft_salesbot.models.sales import (
    LogEntry,
    ProviderMetadata,
    Receipt,
    SaleCandidate,
    SaleSource,
    TokenMetadata,
    Transaction,
    TransactionEvidence,
)

FLAGSHIP_V0 = "0x059edd72cd353df5106d2b9cc5ab83a52287ac3a"
FLAGSHIP_V3 = "0x99a9b7c1116f9ceeb1652de04d5969cce509b069"
SELLER = "0x1111111111111111111111111111111111111111"
BUYER = "0x2222222222222222222222222222222222222222"
FEE_RECIPIENT = "0x0000a26b00c1f0df003000390027140000faa719"
TX_HASH = "0x" + "ab" * 32

ETH = 10**18


def word(value: int) -> str:
    return f"{value:064x}"


def address_word(address: str) -> str:
    return address.lower()[2:].rjust(64, "0")


def address_topic(address: str) -> str:
    return "0x" + address_word(address)


def make_transaction(
    tx_hash: str = TX_HASH,
    value: int = 0,
    from_address: str = BUYER,
    to_address: str = SEAPORT_ADDRESS,
) -> Transaction:
    return Transaction(hash=tx_hash, from_address=from_address, to_address=to_address, value=value)


def make_nft_transfer_log(
    contract: str = FLAGSHIP_V0,
    token_id: int = 1506,
    from_address: str = SELLER,
    to_address: str = BUYER,
) -> LogEntry:
    return LogEntry(
        address=contract,
        topics=(TRANSFER_TOPIC, address_topic(from_address), address_topic(to_address),
                "0x" + word(token_id)),
        data="0x",
    )


def make_weth_transfer_log(
    amount: int,
    from_address: str = BUYER,
    to_address: str = SELLER,
    weth: str = WETH_ADDRESS,
) -> LogEntry:
    return LogEntry(
        address=weth,
        topics=(TRANSFER_TOPIC, address_topic(from_address), address_topic(to_address)),
        data="0x" + word(amount),
    )


def encode_order_fulfilled(
    offer: list[tuple[int, str, int, int]],
    consideration: list[tuple[int, str, int, int, str]],
    order_hash: str = "0x" + "cd" * 32,
    recipient: str = BUYER,
) -> str:
    """ABI-encode OrderFulfilled data. Items are (itemType, token, identifier, amount[, recipient])."""
    offer_offset = 4 * 32
    consideration_offset = offer_offset + 32 + len(offer) * 4 * 32
    parts = [order_hash[2:], address_word(recipient), word(offer_offset), word(consideration_offset)]
    parts.append(word(len(offer)))
    for item_type, token, identifier, amount in offer:
        parts += [word(item_type), address_word(token), word(identifier), word(amount)]
    parts.append(word(len(consideration)))
    for item_type, token, identifier, amount, to in consideration:
        parts += [word(item_type), address_word(token), word(identifier), word(amount), address_word(to)]
    return "0x" + "".join(parts)


def make_order_fulfilled_log(data: str, offerer: str = SELLER) -> LogEntry:
    return LogEntry(
        address=SEAPORT_ADDRESS,
        topics=(ORDER_FULFILLED_TOPIC, address_topic(offerer), address_topic(ZERO_ADDRESS)),
        data=data,
    )


def make_listing_sale_data(
    price_wei: int,
    contract: str = FLAGSHIP_V0,
    token_id: int = 1506,
    fee_wei: int = 0,
) -> str:
    """A buyer filling an ETH listing: NFT offered, ETH to seller and fee recipient."""
    consideration = [(0, ZERO_ADDRESS, 0, price_wei - fee_wei, SELLER)]
    if fee_wei:
        consideration.append((0, ZERO_ADDRESS, 0, fee_wei, FEE_RECIPIENT))
    return encode_order_fulfilled(
        offer=[(2, contract, token_id, 1)],
        consideration=consideration,
    )


def make_receipt(*logs: LogEntry, tx_hash: str = TX_HASH, status: int = 1) -> Receipt:
    return Receipt(transaction_hash=tx_hash, logs=tuple(logs), status=status)


def make_evidence(transaction: Transaction, *logs: LogEntry) -> TransactionEvidence:
    return TransactionEvidence(transaction=transaction, receipt=make_receipt(*logs, tx_hash=transaction.hash))


def make_candidate(
    source_id: str = TX_HASH,
    source: SaleSource = SaleSource.MARKETPLACE_FEED,
    contract: str = FLAGSHIP_V0,
    token_id: int = 1506,
    price_wei: int | None = 2 * ETH,
    buyer: str | None = BUYER,
    evidence: TransactionEvidence | None = None,
) -> SaleCandidate:
    return SaleCandidate(
        contract_address=contract,
        token_id=token_id,
        source_id=source_id,
        source=source,
        buyer_address=buyer,
        raw_price_wei=price_wei,
        evidence=evidence,
    )


def make_opensea_event(
    token_id: int = 1506,
    contract: str = FLAGSHIP_V0,
    quantity: int = 2 * ETH,
    symbol: str = "ETH",
    token_address: str = ZERO_ADDRESS,
    tx_hash: str | None = TX_HASH,
    timestamp: int = 1_700_000_000,
    buyer: str = BUYER,
) -> dict[str, Any]:
    return {
        "event_type": "sale",
        "order_hash": "0x" + "ef" * 32,
        "chain": "ethereum",
        "protocol_address": SEAPORT_ADDRESS,
        "closing_date": timestamp,
        "nft": {
            "identifier": str(token_id),
            "collection": "chromie-squiggle-by-snowfro",
            "contract": contract,
            "token_standard": "erc721",
            "name": f"Chromie Squiggle #{token_id}",
        },
        "quantity": 1,
        "seller": SELLER,
        "buyer": buyer,
        "payment": {
            "quantity": str(quantity),
            "token_address": token_address,
            "decimals": 18,
            "symbol": symbol,
        },
        "transaction": tx_hash,
        "event_timestamp": timestamp,
    }


def make_provider_metadata(
    provider: str = "opensea",
    project: str | None = "Chromie Squiggle",
    artist: str | None = "Snowfro",
    description: str | None = None,
) -> ProviderMetadata:
    return ProviderMetadata(provider, project, artist, description)


def make_token_metadata(
    project: str = "Chromie Squiggle",
    artist: str = "Snowfro",
    token_id: int = 1506,
    contract: str = FLAGSHIP_V0,
) -> TokenMetadata:
    return TokenMetadata(
        contract_address=contract,
        token_id=token_id,
        project_id=token_id // 1_000_000,
        edition_number=token_id % 1_000_000,
        project_name=project,
        artist_name=artist,
        description="",
        canonical_url=f"https://www.artblocks.io/token/{contract}/{token_id}",
        sources=("opensea",),
    )
