from __future__ import annotations

import threading
import time


class RateLimiter:
    """
    Thread-safe steady-rate limiter.

    Consecutive permits are spaced by at least `1 / permits_per_second` across all
    threads sharing the instance. Callers are served in the order they reach the lock.
    A rate of 0 disables limiting; negative rates are rejected.
    """

    def __init__(self, *, permits_per_second: float):
        rate = float(permits_per_second)
        if rate < 0:
            raise ValueError(f"permits_per_second must be >= 0, got {rate}")
        self._min_interval_seconds = 0.0 if rate == 0 else 1.0 / rate
        self._lock = threading.Lock()
        self._next_slot = 0.0

    @classmethod
    def per_minute(cls, permits: float) -> "RateLimiter":
        return cls(permits_per_second=float(permits) / 60.0)

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval_seconds

    def acquire(self) -> float:
        """
        Take the next free slot and sleep until it starts.

        The slot is claimed under the lock and the sleep happens outside it, so
        waiting callers queue behind each other without holding the lock. A limiter
        left idle does not bank permits: the next slot never starts before now.
        Returns the seconds slept.
        """
        if self._min_interval_seconds == 0:
            return 0.0
        with self._lock:
            now = time.monotonic()
            slot = max(self._next_slot, now)
            self._next_slot = slot + self._min_interval_seconds
        wait = slot - now
        if wait > 0:
            time.sleep(wait)
        return wait
