"""Data models for the sales bot."""

from nft_salesbot.models.sales import (
    LogEntry,
    PriceQuote,
    ProviderMetadata,
    Receipt,
    SaleCandidate,
    SaleSource,
    TokenMetadata,
    Transaction,
    TransactionEvidence,
    WEI_PER_ETH,
)
from nft_salesbot.models.records import (
    BotSnapshot,
    FailureKind,
    PublicationTask,
    PublishResult,
    QueueStatus,
    TaskState,
)
from nft_salesbot.models.config import (
    BotConfig,
    ContractConfig,
    Credentials,
    FeedConfig,
    MetadataConfig,
    MonitorConfig,
    PricingConfig,
    PublicationConfig,
    SalesConfig,
)

__all__ = [
    "LogEntry", "PriceQuote", "ProviderMetadata", "Receipt", "SaleCandidate",
    "SaleSource", "TokenMetadata", "Transaction", "TransactionEvidence", "WEI_PER_ETH",
    "BotSnapshot", "FailureKind", "PublicationTask", "PublishResult",
    "QueueStatus", "TaskState",
    "BotConfig", "ContractConfig", "Credentials", "FeedConfig", "MetadataConfig",
    "MonitorConfig", "PricingConfig", "PublicationConfig", "SalesConfig",
]
