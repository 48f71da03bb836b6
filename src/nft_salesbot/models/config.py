"""Configuration models for the sales bot."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

DEFAULT_EDITION_SIZE = 1_000_000

SEAPORT_ADDRESS = "0x00000000000000adc04c56bf30ac9d3c0aaf14dc"  # Seaport 1.5
WETH_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"


@dataclass
class ContractConfig:
    """A tracked NFT contract."""

    address: str
    label: str = "Art Blocks"
    edition_size: int = DEFAULT_EDITION_SIZE

    def __post_init__(self) -> None:
        self.address = self.address.lower()


def _default_contracts() -> list[ContractConfig]:
    return [
        ContractConfig("0x059edd72cd353df5106d2b9cc5ab83a52287ac3a", "Art Blocks Flagship V0"),
        ContractConfig("0xa7d8d9ef8d8ce8992df33d8b8cf4aebabd5bd270", "Art Blocks Flagship V1"),
        ContractConfig("0x99a9b7c1116f9ceeb1652de04d5969cce509b069", "Art Blocks Flagship V3"),
        ContractConfig("0xab0000000000aa06f89b268d604a9c1c41524ac6", "Art Blocks Curated V3.2"),
        ContractConfig("0x145789247973c5d612bf121e9e4eef84b63eb707", "Art Blocks Collaborations"),
        ContractConfig("0x64780ce53f6e966e18a22af13a2f97369580ec11", "Art Blocks Collaborations"),
        ContractConfig("0x942bc2d3e7a589fe5bd4a5c6ef9727dfd82f5c8a", "Art Blocks Explorations"),
        ContractConfig("0xea698596b6009a622c3ed00dd5a8b5d1cae4fc36", "Art Blocks Collaborations"),
    ]


@dataclass
class FeedConfig:
    """Marketplace (OpenSea) sale-event feed poller."""

    enabled: bool = True
    collections: list[str] = field(default_factory=list)  # OpenSea collection slugs
    poll_interval: int = 60  # seconds
    page_limit: int = 50
    initial_lookback: int = 3600  # seconds before start to begin the watermark


@dataclass
class MonitorConfig:
    """Live chain transaction monitor."""

    enabled: bool = True
    subscription: str = "alchemy_minedTransactions"
    marketplace_addresses: list[str] = field(default_factory=lambda: [SEAPORT_ADDRESS])
    reconnect_delay: int = 10  # seconds
    # Pending transactions have no receipt until mined
    receipt_retries: int = 10
    receipt_delay: float = 3.0  # seconds


@dataclass
class PricingConfig:
    """ETH -> fiat price oracle."""

    providers: list[str] = field(default_factory=lambda: ["coingecko", "coinbase"])
    fiat: str = "usd"
    cache_ttl: int = 900  # seconds
    fallback_price: Decimal = Decimal("3000")


def _known_collections() -> dict[str, str]:
    # lowercase project name -> artist, for tokens whose providers omit the artist
    return {
        "chromie squiggle": "Snowfro",
        "fidenza": "Tyler Hobbs",
        "ringers": "Dmitri Cherniak",
        "archetype": "Kjetil Golid",
        "gazers": "Matt Kane",
        "genesis": "DCA",
        "elevated deconstructions": "Emon Hassan",
        "subscapes": "Matt DesLauriers",
        "meridian": "Matt DesLauriers",
        "sudfeh": "Monica Rizzolli",
        "moments of computation": "William Mapan",
    }


@dataclass
class MetadataConfig:
    """Token metadata resolution."""

    cache_ttl: int = 86400  # seconds
    default_label: str = "Art Blocks"
    token_url_template: str = "https://www.artblocks.io/token/{contract}/{token_id}"
    artblocks_token_api: str = "https://token.artblocks.io"
    # Data-quality patches: creator wallet -> display name, project -> artist
    artist_overrides: dict[str, str] = field(default_factory=dict)
    known_collections: dict[str, str] = field(default_factory=_known_collections)


@dataclass
class SalesConfig:
    """Sale acceptance rules."""

    min_price: Decimal = Decimal("0.001")  # ETH
    materiality_threshold: Decimal = Decimal("0.01")  # ETH
    weth_address: str = WETH_ADDRESS
    dedup_retention: int = 7 * 86400  # seconds
    dedup_max_entries: int = 50_000


@dataclass
class PublicationConfig:
    """Outbound publication queue."""

    enabled: bool = False  # dry-run until explicitly enabled
    announce_on_start: bool = True
    startup_quiet_period: int = 300  # seconds
    min_interval: int = 900  # seconds between successful posts
    rate_limit_cooldown: int = 1800  # seconds after a 429
    failure_delay_step: int = 180  # seconds added per consecutive failure
    max_failure_delay: int = 1800
    max_retries: int = 3
    rearm_delay: float = 1.0
    failure_rearm_delay: float = 300.0
    max_length: int = 280


@dataclass
class Credentials:
    """API secrets, normally supplied via environment variables."""

    alchemy_api_key: str = ""
    opensea_api_key: str = ""
    twitter_consumer_key: str = ""
    twitter_consumer_secret: str = ""
    twitter_access_token: str = ""
    twitter_access_secret: str = ""

    @property
    def has_twitter(self) -> bool:
        return all((
            self.twitter_consumer_key,
            self.twitter_consumer_secret,
            self.twitter_access_token,
            self.twitter_access_secret,
        ))


@dataclass
class BotConfig:
    """Complete bot configuration."""

    # Daemon
    log_level: str = "info"
    error_backoff: int = 30  # seconds

    # Endpoints
    alchemy_network: str = "eth-mainnet"
    opensea_api_url: str = "https://api.opensea.io"
    opensea_chain: str = "ethereum"
    ens_api_url: str = "https://api.ensdata.net"
    twitter_api_url: str = "https://api.twitter.com"
    http_timeout: float = 15.0

    contracts: list[ContractConfig] = field(default_factory=_default_contracts)
    feed: FeedConfig = field(default_factory=FeedConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    sales: SalesConfig = field(default_factory=SalesConfig)
    publication: PublicationConfig = field(default_factory=PublicationConfig)
    credentials: Credentials = field(default_factory=Credentials)

    @property
    def contract_addresses(self) -> list[str]:
        return [c.address for c in self.contracts]

    @property
    def alchemy_rpc_url(self) -> str:
        return f"https://{self.alchemy_network}.g.alchemy.com/v2/{self.credentials.alchemy_api_key}"

    @property
    def alchemy_ws_url(self) -> str:
        return f"wss://{self.alchemy_network}.g.alchemy.com/v2/{self.credentials.alchemy_api_key}"

    @property
    def alchemy_nft_url(self) -> str:
        return f"https://{self.alchemy_network}.g.alchemy.com/nft/v3/{self.credentials.alchemy_api_key}"
