"""Token metadata resolution."""

from nft_salesbot.metadata.providers import (
    AlchemyMetadataProvider,
    ArtBlocksMetadataProvider,
    OpenSeaMetadataProvider,
)
from nft_salesbot.metadata.resolver import MetadataResolver

__all__ = [
    "AlchemyMetadataProvider",
    "ArtBlocksMetadataProvider",
    "OpenSeaMetadataProvider",
    "MetadataResolver",
]
