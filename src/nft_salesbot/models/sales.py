"""Sale evidence and resolved display records."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

WEI_PER_ETH = 10**18


class SaleSource(str, Enum):
    """Which ingestion path produced a candidate."""

    MARKETPLACE_FEED = "marketplace_feed"
    CHAIN_MONITOR = "chain_monitor"
    MANUAL = "manual"  # injected by simulate_sale


@dataclass(frozen=True)
class LogEntry:
    """One receipt log."""

    address: str  # emitting contract, lowercase
    topics: tuple[str, ...]
    data: str  # 0x-prefixed hex


@dataclass(frozen=True)
class Transaction:
    """The parts of an Ethereum transaction the pipeline looks at."""

    hash: str
    from_address: str
    to_address: str | None
    value: int  # wei
    input: str = "0x"


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    logs: tuple[LogEntry, ...]
    status: int = 1


@dataclass(frozen=True)
class TransactionEvidence:
    """A transaction and its receipt, fetched together."""

    transaction: Transaction
    receipt: Receipt


@dataclass(frozen=True)
class SaleCandidate:
    """Raw evidence of a sale, produced by an ingestion adapter."""

    contract_address: str  # lowercase
    token_id: int
    source_id: str  # tx hash, order hash, or manual id
    source: SaleSource
    buyer_address: str | None = None
    raw_price_wei: int | None = None  # None until extracted
    evidence: TransactionEvidence | None = None
    occurred_at: float | None = None  # epoch seconds

    @property
    def price_eth(self) -> Decimal | None:
        if self.raw_price_wei is None:
            return None
        return Decimal(self.raw_price_wei) / WEI_PER_ETH


@dataclass
class ProviderMetadata:
    """Normalized parse result from a single metadata provider.

    Empty fields mean the provider had nothing usable for them.
    """

    provider: str
    project_name: str | None = None
    artist_name: str | None = None
    description: str | None = None

    @property
    def empty(self) -> bool:
        return not (self.project_name or self.artist_name or self.description)


@dataclass(frozen=True)
class TokenMetadata:
    """Canonical display record for one token."""

    contract_address: str
    token_id: int
    project_id: int
    edition_number: int
    project_name: str
    artist_name: str
    description: str
    canonical_url: str
    sources: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PriceQuote:
    """Base-asset to fiat conversion snapshot."""

    value: Decimal
    fetched_at: float  # epoch seconds
    source: str
