"""In-memory rate limiter supporting token bucket, sliding and fixed windows.

Suitable for single-instance deployments; use the Redis limiter for
distributed systems.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union

from tenantkit.fixed_window import FixedWindow
from tenantkit.sliding_window import SlidingWindow
from tenantkit.token_bucket import TokenBucket


class Limiter(Protocol):
    """Interface shared by the rate limiting algorithms."""

    def allow(self, key: str) -> bool: ...

    def allow_n(self, key: str, n: int) -> bool: ...

    def remaining(self, key: str) -> int: ...

    def reset(self, key: str) -> None: ...

    def health(self) -> None: ...

    def stats(self) -> dict[str, Any]: ...


class Algorithm(str, Enum):
    """Rate limiting algorithm."""

    TOKEN_BUCKET = "token_bucket"
    SLIDING_WINDOW = "sliding_window"
    FIXED_WINDOW = "fixed_window"


@dataclass
class MemoryLimiterConfig:
    """Settings for :class:`MemoryLimiter`; zero values select defaults."""

    algorithm: Union[Algorithm, str] = Algorithm.TOKEN_BUCKET
    requests_per_second: float = 0.0
    burst_size: int = 0
    limit: int = 0
    window_size: float = 0.0


def _validate_tenant_key(key: str) -> None:
    if key == "":
        raise ValueError("tenant ID cannot be empty")
    if not key.strip():
        raise ValueError("tenant ID cannot be whitespace only")


class MemoryLimiter:
    """Rate limiter that keeps its state in process memory."""

    def __init__(self, config: MemoryLimiterConfig | None = None) -> None:
        config = config or MemoryLimiterConfig()
        raw = config.algorithm or Algorithm.TOKEN_BUCKET
        try:
            algorithm = Algorithm(raw)
        except ValueError:
            raise ValueError(f"unknown algorithm: {raw}") from None

        self._limiter: Limiter
        if algorithm is Algorithm.TOKEN_BUCKET:
            rps = config.requests_per_second
            if rps < 0:
                raise ValueError(f"requests_per_second must be non-negative, got {rps}")
            if rps == 0:
                rps = 10.0
            burst = config.burst_size
            if burst <= 0:
                burst = int(rps * 2)
            self._limiter = TokenBucket(rps, burst)
        else:
            limit = config.limit if config.limit > 0 else 10
            window = config.window_size if config.window_size > 0 else 1.0
            if algorithm is Algorithm.SLIDING_WINDOW:
                self._limiter = SlidingWindow(limit, window)
            else:
                self._limiter = FixedWindow(limit, window)
        self.algorithm = algorithm

    def allow(self, key: str) -> bool:
        """Check whether one request for ``key`` is allowed."""
        _validate_tenant_key(key)
        return self._limiter.allow(key)

    def allow_n(self, key: str, n: int) -> bool:
        """Check whether ``n`` requests for ``key`` are allowed."""
        _validate_tenant_key(key)
        return self._limiter.allow_n(key, n)

    def remaining(self, key: str) -> int:
        """Return the remaining allowance of ``key``."""
        return self._limiter.remaining(key)

    def reset(self, key: str) -> None:
        """Clear the state of ``key``."""
        self._limiter.reset(key)

    def health(self) -> None:
        """Raise if the limiter is not operational."""
        self._limiter.health()

    def stats(self) -> dict[str, Any]:
        """Return the algorithm's statistics plus its name."""
        stats = self._limiter.stats()
        stats["algorithm"] = self.algorithm.value
        return stats


def token_bucket_limiter(rps: float, burst_size: int) -> MemoryLimiter:
    """Create a token bucket limiter."""
    return MemoryLimiter(
        MemoryLimiterConfig(
            algorithm=Algorithm.TOKEN_BUCKET,
            requests_per_second=rps,
            burst_size=burst_size,
        )
    )


def sliding_window_limiter(limit: int, window_size: float) -> MemoryLimiter:
    """Create a sliding window limiter."""
    return MemoryLimiter(
        MemoryLimiterConfig(
            algorithm=Algorithm.SLIDING_WINDOW, limit=limit, window_size=window_size
        )
    )


def fixed_window_limiter(limit: int, window_size: float) -> MemoryLimiter:
    """Create a fixed window limiter."""
    return MemoryLimiter(
        MemoryLimiterConfig(
            algorithm=Algorithm.FIXED_WINDOW, limit=limit, window_size=window_size
        )
    )