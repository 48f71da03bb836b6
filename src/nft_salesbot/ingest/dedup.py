"""Dedup registry - processed event ids plus the feed watermark."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Callable

log = logging.getLogger(__name__)


class DedupRegistry:
    """Bounded set of processed source ids.

    `claim` is synchronous: the check and the insert happen with no
    suspension point between them, so two feeds racing on the same id get
    exactly one winner. Ids older than `retention` seconds are
    evicted, and the registry never holds more than `max_entries` (oldest
    dropped first).
    """

    def __init__(
        self,
        retention: float = 7 * 86400,
        max_entries: int = 50_000,
        watermark: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._retention = retention
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, float] = OrderedDict()
        self._watermark = watermark

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, source_id: str) -> bool:
        return self.contains(source_id)

    def contains(self, source_id: str) -> bool:
        return _normalize(source_id) in self._entries

    def claim(self, source_id: str) -> bool:
        """Record `source_id`. False if it was already processed."""
        key = _normalize(source_id)
        self.evict()
        if key in self._entries:
            return False
        self._entries[key] = self._clock()
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        return True

    def release(self, source_id: str) -> None:
        """Forget a claim so the id can be processed again."""
        self._entries.pop(_normalize(source_id), None)

    def evict(self) -> int:
        """Drop entries past the retention window. Returns how many."""
        cutoff = self._clock() - self._retention
        removed = 0
        while self._entries:
            key, inserted = next(iter(self._entries.items()))
            if inserted >= cutoff:
                break
            del self._entries[key]
            removed += 1
        if removed:
            log.debug("Evicted %d expired dedup entries", removed)
        return removed

    @property
    def watermark(self) -> float | None:
        return self._watermark

    def advance_watermark(self, timestamp: float) -> bool:
        """Move the watermark forward. Never moves it back."""
        if self._watermark is None or timestamp > self._watermark:
            self._watermark = timestamp
            return True
        return False


def _normalize(source_id: str) -> str:
    return source_id.strip().lower()
