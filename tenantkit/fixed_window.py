"""In-memory fixed window rate limiter."""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_CLEANUP_INTERVAL = 3600.0
_IDLE_CUTOFF = 24 * 3600.0


def _warn_if_production() -> None:
    if os.environ.get("ENV") == "production":
        logger.warning(
            "Using in-memory rate limiter (FixedWindow) in production. "
            "This will cause rate limiting inconsistency in multi-instance "
            "deployments. Consider using a Redis-based rate limiter."
        )


@dataclass
class _Window:
    count: int
    window_end: float
    last_access: float


class FixedWindow:
    """Counts requests per fixed window of ``window_size`` seconds.

    Not suitable for multi-instance deployments.
    """

    def __init__(self, limit: int, window_size: float) -> None:
        _warn_if_production()
        self.limit = max(int(limit), 1)
        self.window_size = max(float(window_size), 1.0)
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_cleanup = time.monotonic()

    def allow(self, key: str) -> bool:
        """Count one request for ``key`` if the window has room."""
        return self.allow_n(key, 1)

    def allow_n(self, key: str, n: int) -> bool:
        """Count ``n`` requests for ``key`` if they all fit in the window."""
        if n <= 0:
            return True
        with self._lock:
            if time.monotonic() - self._last_cleanup > _CLEANUP_INTERVAL:
                self._cleanup()
                self._last_cleanup = time.monotonic()

            now = time.monotonic()
            window = self._windows.get(key)
            if window is None:
                window = _Window(0, now + self.window_size, now)
                self._windows[key] = window

            if now > window.window_end:
                window.count = 0
                window.window_end = now + self.window_size
            window.last_access = now

            if window.count + n > self.limit:
                return False
            window.count += n
            return True

    def remaining(self, key: str) -> int:
        """Return how many more requests ``key`` may make in the current window."""
        with self._lock:
            window = self._windows.get(key)
            if window is None or time.monotonic() > window.window_end:
                return self.limit
            return self.limit - window.count

    def reset(self, key: str) -> None:
        """Forget the window of ``key``."""
        with self._lock:
            self._windows.pop(key, None)

    def health(self) -> None:
        """The in-memory limiter is always healthy."""
        with self._lock:
            return None

    def _cleanup(self) -> None:
        cutoff = time.monotonic() - _IDLE_CUTOFF
        for key in [k for k, w in self._windows.items() if w.last_access < cutoff]:
            del self._windows[key]

    def stats(self) -> dict[str, Any]:
        """Return a snapshot of the limiter's configuration and usage."""
        with self._lock:
            return {
                "limit": self.limit,
                "window_size": self.window_size,
                "active_windows": len(self._windows),
            }