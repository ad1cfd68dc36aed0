"""In-memory token bucket rate limiter."""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_CLEANUP_INTERVAL = 3600.0
_IDLE_CUTOFF = 3600.0


def _warn_if_production() -> None:
    if os.environ.get("ENV") == "production":
        logger.warning(
            "Using in-memory rate limiter (TokenBucket) in production. "
            "This will cause rate limiting inconsistency in multi-instance "
            "deployments. Consider using a Redis-based rate limiter."
        )


@dataclass
class _Bucket:
    tokens: float
    last_refill: float


class TokenBucket:
    """Token bucket limiter: tokens refill at ``rps`` per second up to ``burst_size``.

    Not suitable for multi-instance deployments.
    """

    def __init__(self, rps: float, burst_size: int) -> None:
        _warn_if_production()
        if rps <= 0:
            rps = 1.0
        if burst_size < 1:
            burst_size = int(rps)
        self.rps = float(rps)
        self.burst_size = int(burst_size)
        self.window_duration = _CLEANUP_INTERVAL
        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._last_cleanup = time.monotonic()

    def allow(self, key: str) -> bool:
        """Consume one token for ``key`` if available."""
        return self.allow_n(key, 1)

    def allow_n(self, key: str, n: int) -> bool:
        """Consume ``n`` tokens for ``key`` if all are available."""
        if n <= 0:
            return True
        with self._lock:
            if time.monotonic() - self._last_cleanup > self.window_duration:
                self._cleanup()
                self._last_cleanup = time.monotonic()

            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket(float(self.burst_size), time.monotonic())

            now = time.monotonic()
            bucket.tokens = min(
                float(self.burst_size),
                bucket.tokens + (now - bucket.last_refill) * self.rps,
            )
            bucket.last_refill = now
            self._buckets[key] = bucket

            if bucket.tokens >= n:
                bucket.tokens -= n
                return True
            return False

    def remaining(self, key: str) -> int:
        """Return the whole number of tokens currently available for ``key``."""
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return self.burst_size
            elapsed = time.monotonic() - bucket.last_refill
            tokens = min(float(self.burst_size), bucket.tokens + elapsed * self.rps)
            return int(tokens)

    def reset(self, key: str) -> None:
        """Forget all state for ``key``."""
        with self._lock:
            self._buckets.pop(key, None)

    def health(self) -> None:
        """The in-memory limiter is always healthy."""
        with self._lock:
            return None

    def _cleanup(self) -> None:
        cutoff = time.monotonic() - _IDLE_CUTOFF
        for key in [k for k, b in self._buckets.items() if b.last_refill < cutoff]:
            del self._buckets[key]

    def stats(self) -> dict[str, Any]:
        """Return a snapshot of the limiter's configuration and usage."""
        with self._lock:
            return {
                "rps": self.rps,
                "burst_size": self.burst_size,
                "active_buckets": len(self._buckets),
                "window_duration": self.window_duration,
            }