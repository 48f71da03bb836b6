"""Message formatting and rate-limited publication."""

from nft_salesbot.publish.formatter import format_sale_message, format_status_message, weighted_length
from nft_salesbot.publish.queue import PublicationQueue
from nft_salesbot.publish.twitter import TwitterPublisher, classify_response

__all__ = [
    "format_sale_message", "format_status_message", "weighted_length",
    "PublicationQueue",
    "TwitterPublisher", "classify_response",
]
