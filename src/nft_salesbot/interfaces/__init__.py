"""Protocol interfaces for all external-facing collaborators."""

from nft_salesbot.interfaces.chain import ChainClient, TransactionSubscription
from nft_salesbot.interfaces.feed import SaleEventFeed
from nft_salesbot.interfaces.identity import NameLookup
from nft_salesbot.interfaces.metadata import MetadataProvider
from nft_salesbot.interfaces.price import PriceProvider
from nft_salesbot.interfaces.publisher import Publisher

__all__ = [
    "ChainClient", "TransactionSubscription",
    "SaleEventFeed",
    "NameLookup",
    "MetadataProvider",
    "PriceProvider",
    "Publisher",
]
