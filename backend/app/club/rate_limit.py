"""
In-memory sliding-window rate limiter for the admin API.

Each key keeps the timestamps of its accepted requests; only those younger
than the window count. Expired keys are swept every `cleanup_interval_ms`.

State lives in the limiter instance, so it is only correct for a single
process. A multi-process deployment needs a shared store instead.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    remaining: int
    reset_ms: float


class SlidingWindowRateLimiter:
    def __init__(
        self,
        window_ms: float = 60_000,
        max_requests: int = 10,
        clock: Optional[Callable[[], float]] = None,
        cleanup_interval_ms: float = 5 * 60_000,
    ):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.cleanup_interval_ms = cleanup_interval_ms
        self._clock = clock or _now_ms
        self._hits: Dict[str, List[float]] = {}
        self._lock = threading.Lock()
        self._last_cleanup = self._clock()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < self.cleanup_interval_ms:
            return
        self._last_cleanup = now

        for key in list(self._hits):
            valid = [t for t in self._hits[key] if now - t < self.window_ms]
            if valid:
                self._hits[key] = valid
            else:
                del self._hits[key]

    def check(self, key: str) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            self._cleanup(now)

            timestamps = [t for t in self._hits.get(key, []) if now - t < self.window_ms]

            if len(timestamps) >= self.max_requests:
                self._hits[key] = timestamps
                return RateLimitResult(
                    success=False,
                    remaining=0,
                    reset_ms=timestamps[0] + self.window_ms - now,
                )

            timestamps.append(now)
            self._hits[key] = timestamps
            return RateLimitResult(
                success=True,
                remaining=self.max_requests - len(timestamps),
                reset_ms=self.window_ms,
            )

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
