"""Control-surface helpers: publication mode and status snapshots."""

from nft_salesbot.api.mode import PublicationMode, PublicationModeController
from nft_salesbot.api.status import StatusAggregator

__all__ = ["PublicationMode", "PublicationModeController", "StatusAggregator"]
