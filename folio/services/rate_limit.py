"""Fixed-window, in-process rate limiter."""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass
class RateLimitStatus:
    """Outcome of a single rate-limit check."""

    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset_time, tz=timezone.utc)

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets (never negative)."""
        return max(0, math.ceil(self.reset_time - now))


class RateLimiter:
    """Per-key request counter over fixed time windows.

    Usage::

        limiter = RateLimiter()
        status = limiter.check("comment:10.0.0.1", max_requests=3, window=300)
        if not status.allowed:
            ...

    State lives in this instance only. Each process (and each instance)
    enforces its own quota; there is no cross-process coordination.
    """

    def __init__(
        self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        # key -> [count, reset_time]
        self._records: dict[str, list[float]] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def now(self) -> float:
        return self._clock()

    def check(self, key: str, max_requests: int, window: float) -> RateLimitStatus:
        """Count a request against *key* and report whether it is allowed.

        The first request of a window opens it with ``count=1``. Later
        requests increment the count while it stays within *max_requests*;
        once the quota is spent, requests are denied without being counted
        until the window expires.
        """
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            record = self._records.get(key)
            if record is None or now > record[1]:
                reset_time = now + window
                self._records[key] = [1, reset_time]
                return RateLimitStatus(True, max_requests - 1, reset_time)

            count, reset_time = int(record[0]), record[1]
            if count >= max_requests:
                return RateLimitStatus(False, 0, reset_time)

            record[0] = count + 1
            return RateLimitStatus(True, max_requests - (count + 1), reset_time)

    def _sweep(self, now: float) -> None:
        """Drop records whose window has ended. Caller holds the lock."""
        expired = [
            k for k, (_, reset_time) in self._records.items() if now > reset_time
        ]
        for k in expired:
            del self._records[k]
        self._next_sweep = now + self._sweep_interval

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key when *key* is None."""
        with self._lock:
            if key is None:
                self._records.clear()
            else:
                self._records.pop(key, None)

    def __len__(self) -> int:
        return len(self._records)
