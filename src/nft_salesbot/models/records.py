"""Publication task and operation result types."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum


class FailureKind(str, Enum):
    """Classification of a failed publish attempt."""

    PERMANENT = "permanent"  # auth / permission: never retried
    TRANSIENT = "transient"  # network, 5xx
    RATE_LIMITED = "rate_limited"  # transient, and starts the cooldown window


class TaskState(str, Enum):
    QUEUED = "queued"
    SENDING = "sending"
    PUBLISHED = "published"
    REQUEUED = "requeued"
    ABANDONED = "abandoned"


@dataclass
class PublishResult:
    """Result of a single publish attempt."""

    success: bool
    post_id: str | None = None
    failure: FailureKind | None = None
    error: str | None = None
    status_code: int | None = None


@dataclass
class PublicationTask:
    """A fully formatted outbound message."""

    text: str
    enqueued_at: float = field(default_factory=time.time)
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    attempts: int = 0
    state: TaskState = TaskState.QUEUED
    last_error: str | None = None


@dataclass
class QueueStatus:
    """Publication queue state for the control surface."""

    depth: int
    last_publish_time: str | None  # ISO 8601
    failure_count: int
    publication_enabled: bool
    sending: bool = False
    rate_limited_until: str | None = None  # ISO 8601
    published_count: int = 0
    abandoned_count: int = 0
    last_error: str | None = None


@dataclass
class BotSnapshot:
    """Health view: lets an operator tell 'quiet' from 'degraded'."""

    uptime_seconds: int
    queue: QueueStatus
    feed_enabled: bool
    monitor_enabled: bool
    monitor_connected: bool
    publisher_configured: bool
    processed_sales: int
    dedup_size: int
    watermark: str | None  # ISO 8601
    metadata_cache_size: int
    base_price: str | None
    degraded_reasons: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.degraded_reasons
