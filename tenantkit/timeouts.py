"""Timeout presets for HTTP serving and background work. All values are seconds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

_DEFAULT_READ = 30.0
_DEFAULT_WRITE = 30.0
_DEFAULT_IDLE = 120.0
_DEFAULT_REQUEST_CONTEXT = 60.0
_DEFAULT_CONTEXT = 30.0
_DEFAULT_DATABASE_QUERY = 30.0
_DEFAULT_BACKGROUND_TASK = 5 * 60.0


@dataclass
class RequestTimeoutConfig:
    """Timeouts of a single HTTP request."""

    read_timeout: float = _DEFAULT_READ
    write_timeout: float = _DEFAULT_WRITE
    idle_timeout: float = _DEFAULT_IDLE
    request_context_timeout: float = _DEFAULT_REQUEST_CONTEXT


@dataclass
class TimeoutConfig:
    """Timeouts for every kind of operation in the system."""

    request_timeout: RequestTimeoutConfig = field(default_factory=RequestTimeoutConfig)
    default_context_timeout: float = _DEFAULT_CONTEXT
    database_query_timeout: float = _DEFAULT_DATABASE_QUERY
    background_task_timeout: float = _DEFAULT_BACKGROUND_TASK


def default_request_timeout_config() -> RequestTimeoutConfig:
    """Sensible defaults for HTTP request handling."""
    return RequestTimeoutConfig()


def fast_request_timeout_config() -> RequestTimeoutConfig:
    """Aggressive timeouts for services that must fail fast."""
    return RequestTimeoutConfig(10.0, 10.0, 30.0, 15.0)


def relaxed_request_timeout_config() -> RequestTimeoutConfig:
    """Generous timeouts for uploads, long operations and slow networks."""
    return RequestTimeoutConfig(300.0, 300.0, 600.0, 600.0)


def custom_request_timeout_config(
    read_timeout: float,
    write_timeout: float,
    idle_timeout: float,
    context_timeout: float,
) -> RequestTimeoutConfig:
    """Build request timeouts; non-positive values fall back to the defaults."""
    return RequestTimeoutConfig(
        read_timeout if read_timeout > 0 else _DEFAULT_READ,
        write_timeout if write_timeout > 0 else _DEFAULT_WRITE,
        idle_timeout if idle_timeout > 0 else _DEFAULT_IDLE,
        context_timeout if context_timeout > 0 else _DEFAULT_REQUEST_CONTEXT,
    )


def default_timeout_config() -> TimeoutConfig:
    """Sensible defaults for all system timeouts."""
    return TimeoutConfig(default_request_timeout_config(), 30.0, 30.0, 5 * 60.0)


def fast_timeout_config() -> TimeoutConfig:
    """Aggressive timeouts across all operations."""
    return TimeoutConfig(fast_request_timeout_config(), 10.0, 10.0, 60.0)


def relaxed_timeout_config() -> TimeoutConfig:
    """Generous timeouts across all operations."""
    return TimeoutConfig(relaxed_request_timeout_config(), 120.0, 120.0, 30 * 60.0)


def custom_timeout_config(
    request_timeout: Optional[RequestTimeoutConfig] = None,
    default_context_timeout: float = 0.0,
    database_query_timeout: float = 0.0,
    background_task_timeout: float = 0.0,
) -> TimeoutConfig:
    """Build system timeouts; missing or non-positive values fall back to the defaults."""
    return TimeoutConfig(
        request_timeout if request_timeout is not None else default_request_timeout_config(),
        default_context_timeout if default_context_timeout > 0 else _DEFAULT_CONTEXT,
        database_query_timeout if database_query_timeout > 0 else _DEFAULT_DATABASE_QUERY,
        background_task_timeout
        if background_task_timeout > 0
        else _DEFAULT_BACKGROUND_TASK,
    )