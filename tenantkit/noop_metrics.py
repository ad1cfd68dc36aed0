"""Metrics sink that records nothing.

Useful when metrics collection is not needed, and as a default during
development and testing. It keeps only a count of the metrics it was
handed and dropped.
"""

from __future__ import annotations

import threading


class NoOpMetrics:
    """Accepts every metric, discards it and counts the discard."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._discarded = 0

    @property
    def discarded(self) -> int:
        """Number of metrics handed to this sink so far."""
        with self._lock:
            return self._discarded

    def _discard(self) -> None:
        with self._lock:
            self._discarded += 1

    def record_request(
        self, method: str, endpoint: str, status_code: int, duration_ms: int
    ) -> None:
        """Discard a request metric."""
        self._discard()

    def record_query(self, query: str, rows_affected: int, duration_ms: int) -> None:
        """Discard a query metric."""
        self._discard()

    def record_error(self, error_type: str, message: str) -> None:
        """Discard an error metric."""
        self._discard()

    def record_quota_usage(self, quota_type: str, used: int, limit: int) -> None:
        """Discard a quota usage metric."""
        self._discard()

    def record_rate_limit(self, endpoint: str, limited: bool) -> None:
        """Discard a rate limit metric."""
        self._discard()

    def record_cache_hit(self, key: str, hit: bool) -> None:
        """Discard a cache hit or miss."""
        self._discard()