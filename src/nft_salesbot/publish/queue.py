"""Publication queue - single consumer, gated by rate limits and backoff."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from datetime import datetime, timezone
from typing import Awaitable, Callable

from nft_salesbot.interfaces.publisher import Publisher
from nft_salesbot.models.config import PublicationConfig
from nft_salesbot.models.records import (
    FailureKind,
    PublicationTask,
    PublishResult,
    QueueStatus,
    TaskState,
)

log = logging.getLogger(__name__)

# Longest single sleep while waiting on a gate, so resets are noticed
GATE_POLL_INTERVAL = 60.0


def _iso(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class PublicationQueue:
    """Ordered outbound queue with one in-flight send at a time.

    Task lifecycle: QUEUED -> SENDING -> PUBLISHED | REQUEUED | ABANDONED.
    Before each live send the consumer waits until `next_eligible_at()`,
    which combines the startup quiet period, the minimum interval since the
    last successful post, the rate-limit cooldown and the failure backoff.

    With publication disabled (or no publisher) the queue runs dry: tasks
    are logged as previews and marked published without touching the gates.
    """

    def __init__(
        self,
        publisher: Publisher | None,
        config: PublicationConfig | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._publisher = publisher
        self._config = config or PublicationConfig()
        self._clock = clock
        self._sleep = sleep

        self._tasks: deque[PublicationTask] = deque()
        self._enabled = self._config.enabled and publisher is not None
        self._sending = False
        self._wakeup = asyncio.Event()

        self._started_at = clock()
        self._last_publish_at: float | None = None
        self._last_failure_at: float | None = None
        self._last_rate_limit_at: float | None = None
        self._failure_count = 0

        self.published_count = 0
        self.abandoned_count = 0
        self.previewed_count = 0
        self.last_error: str | None = None
        self.history: deque[PublicationTask] = deque(maxlen=50)

    def __len__(self) -> int:
        return len(self._tasks)

    # ── Mode ─────────────────────────────────────────────────

    @property
    def publisher_configured(self) -> bool:
        return self._publisher is not None

    @property
    def publication_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> bool:
        """Switch live/dry-run. Live mode needs a publisher."""
        if enabled and self._publisher is None:
            log.warning("Cannot enable publication: no publisher configured")
            return False
        self._enabled = enabled
        self._wakeup.set()
        return True

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def sending(self) -> bool:
        return self._sending

    @property
    def pending(self) -> list[PublicationTask]:
        return list(self._tasks)

    # ── Producer side ────────────────────────────────────────

    def enqueue(self, text: str) -> PublicationTask:
        task = PublicationTask(text=text, enqueued_at=self._clock())
        self._tasks.append(task)
        log.info("Queued publication %s (depth=%d)", task.task_id, len(self._tasks))
        self._wakeup.set()
        return task

    def reset_failure_state(self) -> None:
        """Clear the failure counter and the rate-limit cooldown."""
        log.info("Resetting failure state (failures=%d)", self._failure_count)
        self._failure_count = 0
        self._last_failure_at = None
        self._last_rate_limit_at = None
        self._wakeup.set()

    # ── Gates ────────────────────────────────────────────────

    def _failure_delay(self) -> float:
        return min(
            self._failure_count * self._config.failure_delay_step,
            self._config.max_failure_delay,
        )

    def next_eligible_at(self) -> float:
        """Earliest time a live send may start."""
        cfg = self._config
        gates = [self._started_at + cfg.startup_quiet_period]
        if self._last_publish_at is not None:
            gates.append(self._last_publish_at + cfg.min_interval)
        if self._last_rate_limit_at is not None:
            gates.append(self._last_rate_limit_at + cfg.rate_limit_cooldown)
        if self._failure_count and self._last_failure_at is not None:
            gates.append(self._last_failure_at + self._failure_delay())
        return max(gates)

    # ── Consumer side ────────────────────────────────────────

    async def process_next(self) -> PublicationTask | None:
        """Attempt the head task once, ignoring time gates.

        Returns None when the queue is empty or a send is already in flight.
        """
        if self._sending or not self._tasks:
            return None
        task = self._tasks.popleft()

        if not self._enabled:
            log.info("[dry-run] Publication %s:\n%s", task.task_id, task.text)
            task.state = TaskState.PUBLISHED
            self.previewed_count += 1
            self.history.append(task)
            return task

        self._sending = True
        task.state = TaskState.SENDING
        task.attempts += 1
        try:
            result = await self._publisher.publish(task.text)
        except Exception as exc:
            log.error("Publisher raised for %s: %s", task.task_id, exc, exc_info=True)
            result = PublishResult(success=False, failure=FailureKind.TRANSIENT, error=str(exc))
        finally:
            self._sending = False

        self._record(task, result)
        return task

    def _record(self, task: PublicationTask, result: PublishResult) -> None:
        now = self._clock()
        if result.success:
            task.state = TaskState.PUBLISHED
            self._last_publish_at = now
            self._failure_count = 0
            self._last_failure_at = None
            self.published_count += 1
            self.history.append(task)
            log.info("Published %s (post %s)", task.task_id, result.post_id)
            return

        task.last_error = result.error
        self.last_error = result.error

        if result.failure == FailureKind.PERMANENT:
            task.state = TaskState.ABANDONED
            self.abandoned_count += 1
            self.history.append(task)
            log.error("Abandoned %s after permanent failure (HTTP %s): %s",
                      task.task_id, result.status_code, result.error)
            return

        self._failure_count += 1
        self._last_failure_at = now
        if result.failure == FailureKind.RATE_LIMITED:
            self._last_rate_limit_at = now
            log.warning("Rate limited; cooling down for %ds", self._config.rate_limit_cooldown)

        if task.attempts > self._config.max_retries:
            task.state = TaskState.ABANDONED
            self.abandoned_count += 1
            self.history.append(task)
            log.error("Abandoned %s after %d attempts: %s", task.task_id, task.attempts, result.error)
            return

        task.state = TaskState.REQUEUED
        self._tasks.appendleft(task)
        log.warning("Requeued %s (attempt %d, failures=%d, backoff %.0fs): %s",
                    task.task_id, task.attempts, self._failure_count,
                    self._failure_delay(), result.error)

    async def drain(self) -> int:
        """Work through the queue until it is empty, honouring the gates.

        Returns the number of tasks handled.
        """
        handled = 0
        while self._tasks:
            if self._enabled:
                wait = self.next_eligible_at() - self._clock()
                if wait > 0:
                    log.debug("Next publication eligible in %.0fs", wait)
                    await self._sleep(min(wait, GATE_POLL_INTERVAL))
                    continue

            task = await self.process_next()
            if task is None:
                await self._sleep(self._config.rearm_delay)
                continue
            handled += 1

            if self._tasks:
                await self._sleep(
                    self._config.failure_rearm_delay if self._failure_count
                    else self._config.rearm_delay
                )
        return handled

    async def run(self) -> None:
        """Consume forever; wakes up whenever something is enqueued."""
        log.info("Publication queue started (%s)", "live" if self._enabled else "dry-run")
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()
            await self.drain()

    def status(self) -> QueueStatus:
        now = self._clock()
        until = None
        if self._last_rate_limit_at is not None:
            end = self._last_rate_limit_at + self._config.rate_limit_cooldown
            if end > now:
                until = _iso(end)
        return QueueStatus(
            depth=len(self._tasks),
            last_publish_time=_iso(self._last_publish_at),
            failure_count=self._failure_count,
            publication_enabled=self._enabled,
            sending=self._sending,
            rate_limited_until=until,
            published_count=self.published_count,
            abandoned_count=self.abandoned_count,
            last_error=self.last_error,
        )
