"""In-memory sliding window rate limiter."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

_CLEANUP_INTERVAL = 3600.0
_IDLE_CUTOFF = 24 * 3600.0


def _warn_if_production() -> None:
    if os.environ.get("ENV") == "production":
        logger.warning(
            "Using in-memory rate limiter (SlidingWindow) in production. "
            "This will cause rate limiting inconsistency in multi-instance "
            "deployments. Consider using a Redis-based rate limiter."
        )


@dataclass
class _History:
    last_read: float
    timestamps: deque = field(default_factory=deque)


class SlidingWindow:
    """Counts requests over a sliding window of ``window_size`` seconds.

    Not suitable for multi-instance deployments.
    """

    def __init__(self, limit: int, window_size: float) -> None:
        _warn_if_production()
        self.limit = max(int(limit), 1)
        self.window_size = max(float(window_size), 1.0)
        self._requests: dict[str, _History] = {}
        self._lock = threading.Lock()
        self._last_cleanup = time.monotonic()

    def allow(self, key: str) -> bool:
        """Record one request for ``key`` if the window has room."""
        return self.allow_n(key, 1)

    def allow_n(self, key: str, n: int) -> bool:
        """Record ``n`` requests for ``key`` if they all fit in the window."""
        if n <= 0:
            return True
        with self._lock:
            if time.monotonic() - self._last_cleanup > _CLEANUP_INTERVAL:
                self._cleanup()
                self._last_cleanup = time.monotonic()

            now = time.monotonic()
            history = self._requests.setdefault(key, _History(last_read=now))

            cutoff = now - self.window_size
            stamps = history.timestamps
            while stamps and stamps[0] <= cutoff:
                stamps.popleft()
            history.last_read = now

            if len(stamps) + n > self.limit:
                return False
            stamps.extend([now] * n)
            return True

    def remaining(self, key: str) -> int:
        """Return how many more requests ``key`` may make in the current window."""
        with self._lock:
            history = self._requests.get(key)
            if history is None:
                return self.limit
            cutoff = time.monotonic() - self.window_size
            count = sum(1 for ts in history.timestamps if ts > cutoff)
            return self.limit - count

    def reset(self, key: str) -> None:
        """Forget the request history of ``key``."""
        with self._lock:
            self._requests.pop(key, None)

    def health(self) -> None:
        """The in-memory limiter is always healthy."""
        with self._lock:
            return None

    def _cleanup(self) -> None:
        cutoff = time.monotonic() - _IDLE_CUTOFF
        for key in [k for k, h in self._requests.items() if h.last_read < cutoff]:
            del self._requests[key]

    def stats(self) -> dict[str, Any]:
        """Return a snapshot of the limiter's configuration and usage."""
        with self._lock:
            return {
                "limit": self.limit,
                "window_size": self.window_size,
                "active_windows": len(self._requests),
                "total_timestamps": sum(
                    len(h.timestamps) for h in self._requests.values()
                ),
            }