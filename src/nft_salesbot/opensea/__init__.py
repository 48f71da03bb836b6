"""OpenSea API client and sale-event feed poller."""

from nft_salesbot.opensea.client import OpenSeaClient
from nft_salesbot.opensea.feed import MalformedEvent, MarketplaceFeedPoller, parse_sale_event

__all__ = ["OpenSeaClient", "MalformedEvent", "MarketplaceFeedPoller", "parse_sale_event"]
