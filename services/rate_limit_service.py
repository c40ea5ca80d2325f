"""
In-memory fixed-window rate limiting.

Single-process only: counters live in this worker's memory.
"""

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional
import structlog

from config import settings
from exceptions import RateLimitError

logger = structlog.get_logger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float
    blocked: bool = False


class RateLimiter:
    """
    Allow max_requests per key within each window.

    Once a key goes over the limit it stays blocked until its window
    resets.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    def check(self, key: str) -> int:
        """
        Count one request for key.

        Returns:
            Requests left in the current window

        Raises:
            RateLimitError: If the key is over its limit
        """
        now = self._clock()

        with self._lock:
            self._cleanup(now)
            window = self._windows.get(key)

            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return self.max_requests - 1

            if not window.blocked:
                window.count += 1
                if window.count > self.max_requests:
                    window.blocked = True
                    logger.warning(
                        "rate_limit_exceeded",
                        key=key,
                        count=window.count,
                        limit=self.max_requests
                    )

            if window.blocked:
                retry_after = max(1, math.ceil(window.reset_at - now))
                raise RateLimitError(retry_after=retry_after, limit=self.max_requests)

            return self.max_requests - window.count

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or every key."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def _cleanup(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for k in expired:
            del self._windows[k]


def rate_limit_key(kind: str, user_id: Optional[str], client_host: Optional[str]) -> str:
    """Per-user key when signed in, per-client otherwise."""
    if user_id:
        return f"{kind}:user:{user_id}"
    return f"{kind}:anon:{client_host or 'unknown'}"


_bulk_limiter: Optional[RateLimiter] = None


def get_bulk_rate_limiter() -> RateLimiter:
    """Limiter guarding bulk validations."""
    global _bulk_limiter
    if _bulk_limiter is None:
        _bulk_limiter = RateLimiter(
            max_requests=settings.bulk_rate_limit_max_requests,
            window_seconds=settings.bulk_rate_limit_window_seconds,
        )
    return _bulk_limiter
