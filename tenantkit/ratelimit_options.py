"""Presets for the limit and reset window reported by the rate limit middleware."""

from __future__ import annotations

from dataclasses import dataclass

_DEFAULT_LIMIT = 100
_DEFAULT_WINDOW = 60.0


@dataclass
class RateLimitOptions:
    """How many requests a window allows and how long it lasts, in seconds.

    ``limit_per_window`` is what the ``X-RateLimit-Limit`` header reports.
    """

    limit_per_window: int = _DEFAULT_LIMIT
    reset_window: float = _DEFAULT_WINDOW


def default_rate_limit_options() -> RateLimitOptions:
    """100 requests per minute."""
    return RateLimitOptions(100, 60.0)


def strict_rate_limit_options() -> RateLimitOptions:
    """30 requests per minute, for high-security or abuse-prone endpoints."""
    return RateLimitOptions(30, 60.0)


def generous_rate_limit_options() -> RateLimitOptions:
    """500 requests per minute, for internal APIs or trusted clients."""
    return RateLimitOptions(500, 60.0)


def per_second_rate_limit_options() -> RateLimitOptions:
    """10 requests per second."""
    return RateLimitOptions(10, 1.0)


def custom_rate_limit_options(
    limit_per_window: int, reset_window: float
) -> RateLimitOptions:
    """Build options; non-positive values fall back to the defaults."""
    return RateLimitOptions(
        limit_per_window if limit_per_window > 0 else _DEFAULT_LIMIT,
        reset_window if reset_window > 0 else _DEFAULT_WINDOW,
    )