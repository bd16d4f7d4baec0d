"""Per-key fixed-window rate limiter (in-memory) with a background sweeper."""
import asyncio
import logging
import threading
import time
from typing import Callable

from bpeople_ratelimit.models import CounterRecord, RateLimitPolicy, Verdict
from bpeople_ratelimit.policies import DEFAULT_POLICY

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


def now_ms() -> int:
    """Wall-clock time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class RateLimiter:
    """Counts requests per opaque key inside fixed windows.

    One ``CounterRecord`` is kept per key. A record whose ``reset_at`` has
    passed is treated exactly like a missing one, so the periodic sweep only
    bounds memory and never changes a verdict.

    State lives for the lifetime of the instance; nothing is shared between
    instances or processes.
    """

    def __init__(
        self,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if sweep_interval_seconds <= 0:
            raise ValueError(f"sweep_interval_seconds must be positive, got {sweep_interval_seconds}")
        self._records: dict[str, CounterRecord] = {}
        # check() may run on the event loop or in the threadpool (sync deps).
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._sweep_task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._records)

    @property
    def sweep_interval_seconds(self) -> float:
        return self._sweep_interval

    def check(self, key: str, policy: RateLimitPolicy = DEFAULT_POLICY, now: int | None = None) -> Verdict:
        """Count one request against ``key`` and return the verdict.

        This is a fixed window, not a sliding one: the counter resets wholesale
        at ``reset_at``, so a burst straddling a boundary can admit up to
        ``2 * policy.limit`` requests. Callers rely on that boundary behavior.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            record = self._records.get(key)
            live = record is not None and record.reset_at > now

            if policy.limit <= 0:
                reset_at = record.reset_at if live else now + max(policy.window_ms, 0)
                logger.debug("Non-positive limit for %s, denying", key)
                return Verdict(allowed=False, remaining=0, reset_at=reset_at, retry_after_ms=reset_at - now)

            if not live:
                if policy.window_ms <= 0:
                    # Every request opens a window that is already over; nothing to store.
                    self._records.pop(key, None)
                    return Verdict(allowed=True, remaining=policy.limit - 1, reset_at=now, retry_after_ms=0)
                reset_at = now + policy.window_ms
                self._records[key] = CounterRecord(count=1, reset_at=reset_at)
                return Verdict(allowed=True, remaining=policy.limit - 1, reset_at=reset_at, retry_after_ms=0)

            if record.count >= policy.limit:
                logger.debug("Rate limit exceeded for %s (%d/%d)", key, record.count, policy.limit)
                return Verdict(
                    allowed=False,
                    remaining=0,
                    reset_at=record.reset_at,
                    retry_after_ms=record.reset_at - now,
                )

            record.count += 1
            return Verdict(
                allowed=True,
                remaining=policy.limit - record.count,
                reset_at=record.reset_at,
                retry_after_ms=0,
            )

    def peek(self, key: str, now: int | None = None) -> CounterRecord | None:
        """Return a copy of the live record for ``key`` without counting a request."""
        if now is None:
            now = self._clock()
        with self._lock:
            record = self._records.get(key)
            if record is None or record.reset_at <= now:
                return None
            return record.model_copy()

    def reset(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def sweep(self, now: int | None = None) -> int:
        """Delete every expired record and return how many were removed."""
        if now is None:
            now = self._clock()
        with self._lock:
            expired = [key for key, record in self._records.items() if record.reset_at <= now]
            for key in expired:
                del self._records[key]
        if expired:
            logger.debug("Swept %d expired rate-limit records", len(expired))
        return len(expired)

    @property
    def sweeper_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self) -> None:
        """Start the periodic sweep task on the running loop (no-op if already running)."""
        if self.sweeper_running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="rate-limit-sweeper")
        self._sweep_task.add_done_callback(self._on_sweeper_done)
        logger.info("Rate limiter sweeper started (every %.1fs)", self._sweep_interval)

    async def stop(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        # wait() leaves a cancellation of the caller to propagate.
        await asyncio.wait({task})
        logger.info("Rate limiter sweeper stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Rate limiter sweep failed")

    @staticmethod
    def _on_sweeper_done(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception():
            logger.error("Rate limiter sweeper terminated: %s", task.exception())
