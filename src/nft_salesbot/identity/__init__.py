"""Buyer identity resolution."""

from nft_salesbot.identity.lookups import EnsDataLookup, OpenSeaProfileLookup
from nft_salesbot.identity.resolver import IdentityResolver, truncate_address

__all__ = ["EnsDataLookup", "OpenSeaProfileLookup", "IdentityResolver", "truncate_address"]
