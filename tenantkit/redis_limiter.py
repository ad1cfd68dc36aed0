"""Redis-backed rate limiter for deployments with many application instances.

Every check runs as a Lua script, so it is atomic across all clients that
share the same Redis server, Sentinel group or cluster.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import redis

_ALGORITHMS = ("token_bucket", "fixed_window", "sliding_window")
_CONNECT_TIMEOUT = 5.0

TOKEN_BUCKET_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local now = tonumber(ARGV[2])
local window = tonumber(ARGV[3])
local requested = tonumber(ARGV[4])

local bucket = redis.call('HMGET', key, 'tokens', 'last_update')
local tokens = tonumber(bucket[1])
local last_update = tonumber(bucket[2])

if tokens == nil then
    tokens = limit
    last_update = now
end

local elapsed = now - last_update
local refill = math.floor(elapsed * limit / window)
tokens = math.min(limit, tokens + refill)

if tokens >= requested then
    tokens = tokens - requested
    redis.call('HMSET', key, 'tokens', tokens, 'last_update', now)
    redis.call('EXPIRE', key, window)
    return {1, tokens}
else
    return {0, tokens}
end
"""

FIXED_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local requested = tonumber(ARGV[3])

local current = redis.call('GET', key)
if current == false then
    current = 0
else
    current = tonumber(current)
end

if current + requested <= limit then
    local new_count = redis.call('INCRBY', key, requested)
    if new_count == requested then
        redis.call('EXPIRE', key, window)
    end
    return {1, limit - new_count}
else
    return {0, limit - current}
end
"""

SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local requested = tonumber(ARGV[4])

local cutoff = now - window * 1000

redis.call('ZREMRANGEBYSCORE', key, 0, cutoff)

local current = redis.call('ZCARD', key)

if current + requested <= limit then
    for i = 1, requested do
        redis.call('ZADD', key, now, now .. ':' .. i)
    end
    redis.call('EXPIRE', key, window * 2)
    local new_count = redis.call('ZCARD', key)
    return {1, limit - new_count}
else
    return {0, limit - current}
end
"""

_SCRIPTS = {
    "token_bucket": TOKEN_BUCKET_SCRIPT,
    "fixed_window": FIXED_WINDOW_SCRIPT,
    "sliding_window": SLIDING_WINDOW_SCRIPT,
}

_CONNECTION_ERRORS = (redis.RedisError, OSError, ValueError, OverflowError)


class RedisLimiterError(Exception):
    """Raised when Redis cannot be reached or answers unexpectedly."""


@dataclass
class RedisLimiterConfig:
    """Settings for :class:`RedisLimiter`.

    ``redis_addr``, ``password`` and ``db`` are only used by
    :meth:`RedisLimiter.from_address`. ``window`` is in seconds.
    """

    redis_addr: str = ""
    password: str = ""
    db: int = 0
    algorithm: str = ""
    limit: int = 0
    window: float = 0.0


def _validated_algorithm(config: RedisLimiterConfig) -> str:
    if config.limit <= 0:
        raise ValueError("limit must be positive")
    if config.window <= 0:
        raise ValueError("window duration must be positive")
    algorithm = config.algorithm or "token_bucket"
    if algorithm not in _ALGORITHMS:
        raise ValueError(
            f"unsupported algorithm: {algorithm} "
            "(use token_bucket, fixed_window, or sliding_window)"
        )
    return algorithm


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port_text = address.rpartition(":")
    if not sep:
        return address, 6379
    if not port_text.isdigit() or not 0 < int(port_text) < 65536:
        raise RedisLimiterError(f"invalid redis address: {address}")
    return host or "localhost", int(port_text)


def _as_text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode()
    return value


class RedisLimiter:
    """Distributed rate limiter whose state lives in Redis."""

    def __init__(self, client: Any, config: RedisLimiterConfig) -> None:
        if client is None:
            raise ValueError("redis client cannot be None")
        self.algorithm = _validated_algorithm(config)
        self.limit = int(config.limit)
        self.window = float(config.window)
        self._client = client
        self._owns_connection = False
        try:
            client.ping()
        except _CONNECTION_ERRORS as exc:
            raise RedisLimiterError(f"failed to connect to Redis: {exc}") from exc
        self._script = client.register_script(_SCRIPTS[self.algorithm])

    @classmethod
    def from_address(cls, config: RedisLimiterConfig) -> "RedisLimiter":
        """Open a standalone connection to ``config.redis_addr`` and use it.

        The limiter owns that connection and closes it in :meth:`close`.
        """
        if not config.redis_addr:
            raise ValueError("redis address is required")
        _validated_algorithm(config)
        host, port = _split_address(config.redis_addr)
        client = redis.Redis(
            host=host,
            port=port,
            password=config.password or None,
            db=config.db,
            socket_connect_timeout=_CONNECT_TIMEOUT,
            socket_timeout=_CONNECT_TIMEOUT,
        )
        try:
            limiter = cls(client, config)
        except RedisLimiterError as exc:
            client.close()
            raise RedisLimiterError(
                f"failed to connect to Redis at {config.redis_addr}: {exc.__cause__}"
            ) from exc.__cause__
        limiter._owns_connection = True
        return limiter

    @property
    def _window_seconds(self) -> int:
        return int(self.window)

    def allow(self, key: str) -> bool:
        """Check whether one request for ``key`` is allowed."""
        return self.allow_n(key, 1)

    def allow_n(self, key: str, n: int) -> bool:
        """Check whether ``n`` requests for ``key`` are allowed."""
        if n <= 0:
            raise ValueError("n must be positive")

        window = self._window_seconds
        if self.algorithm == "token_bucket":
            args = [self.limit, int(time.time()), window, n]
        elif self.algorithm == "fixed_window":
            args = [self.limit, window, n]
        else:
            args = [self.limit, window, int(time.time() * 1000), n]

        try:
            result = self._script(keys=[key], args=args)
        except redis.RedisError as exc:
            raise RedisLimiterError(f"redis rate limit check failed: {exc}") from exc

        if not result:
            raise RedisLimiterError("unexpected redis response")
        allowed = result[0]
        if not isinstance(allowed, int):
            raise RedisLimiterError("unexpected redis response type")
        return allowed == 1

    def remaining(self, key: str) -> int:
        """Return how many requests ``key`` may still make."""
        if self.algorithm == "token_bucket":
            return self._remaining_tokens(key)
        if self.algorithm == "fixed_window":
            return self._remaining_fixed(key)
        return self._remaining_sliding(key)

    def _remaining_tokens(self, key: str) -> int:
        try:
            result = self._client.hmget(key, "tokens")
        except redis.RedisError as exc:
            raise RedisLimiterError(f"failed to get remaining tokens: {exc}") from exc
        if not result or result[0] is None:
            return self.limit
        try:
            return int(_as_text(result[0]))
        except (TypeError, ValueError):
            return self.limit

    def _remaining_fixed(self, key: str) -> int:
        try:
            value = self._client.get(key)
        except redis.RedisError as exc:
            raise RedisLimiterError(f"failed to get current count: {exc}") from exc
        if value is None:
            return self.limit
        try:
            current = int(_as_text(value))
        except (TypeError, ValueError) as exc:
            raise RedisLimiterError(f"failed to get current count: {exc}") from exc
        return max(self.limit - current, 0)

    def _remaining_sliding(self, key: str) -> int:
        cutoff = int(time.time() * 1000) - self._window_seconds * 1000
        try:
            self._client.zremrangebyscore(key, 0, cutoff)
        except redis.RedisError as exc:
            raise RedisLimiterError(f"failed to remove old entries: {exc}") from exc
        try:
            current = int(self._client.zcard(key))
        except redis.RedisError as exc:
            raise RedisLimiterError(f"failed to get current count: {exc}") from exc
        return max(self.limit - current, 0)

    def reset(self, key: str) -> None:
        """Delete the state of ``key``."""
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise RedisLimiterError(f"failed to reset key: {exc}") from exc

    def health(self) -> None:
        """Raise :class:`RedisLimiterError` if Redis does not answer a ping."""
        try:
            self._client.ping()
        except _CONNECTION_ERRORS as exc:
            raise RedisLimiterError(f"redis health check failed: {exc}") from exc

    def stats(self) -> dict[str, Any]:
        """Return the limiter's settings, its health and Redis' stats section."""
        try:
            info: Any = self._client.info("stats")
        except _CONNECTION_ERRORS:
            info = {}
        try:
            self.health()
            healthy = True
        except RedisLimiterError:
            healthy = False
        return {
            "backend": "redis",
            "algorithm": self.algorithm,
            "limit": self.limit,
            "window": self.window,
            "healthy": healthy,
            "info": info,
        }

    def close(self) -> None:
        """Close the connection if this limiter opened it."""
        if self._owns_connection:
            self._client.close()

    def __enter__(self) -> "RedisLimiter":
        return self

    def __exit__(self, *exc_info: Optional[object]) -> None:
        self.close()