"""Mode controller - live publication vs dry-run."""

from __future__ import annotations

import logging
from enum import Enum

from nft_salesbot.publish.queue import PublicationQueue

log = logging.getLogger(__name__)


class PublicationMode(str, Enum):
    LIVE = "live"
    DRY_RUN = "dry_run"


class PublicationModeController:
    """Controls whether queued posts reach the publisher."""

    def __init__(self, queue: PublicationQueue) -> None:
        self._queue = queue

    def get_mode(self) -> PublicationMode:
        return PublicationMode.LIVE if self._queue.publication_enabled else PublicationMode.DRY_RUN

    def set_mode(self, mode: PublicationMode) -> bool:
        """Returns False when live mode is refused (no publisher)."""
        old = self.get_mode()
        if not self._queue.set_enabled(mode == PublicationMode.LIVE):
            return False
        if old != mode:
            log.info("Mode changed: %s -> %s", old.value, mode.value)
        return True
