"""WSGI middleware that applies a rate limiter to each request."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

from werkzeug.wrappers import Request, Response

from tenantkit.http_context import TenantContextError, get_tenant_id
from tenantkit.memory_limiter import Limiter
from tenantkit.ratelimit_options import RateLimitOptions, default_rate_limit_options

logger = logging.getLogger(__name__)

WSGIApp = Callable[..., Iterable[bytes]]
KeyExtractor = Callable[[Request], str]
LimitExceededHandler = Callable[[Request, int, datetime], WSGIApp]


def default_rate_limit_error_handler(
    request: Request, remaining: int, reset_time: datetime
) -> Response:
    """Answer 429 Too Many Requests with the remaining count and reset time."""
    response = Response("rate limit exceeded", status=429, mimetype="text/plain")
    response.headers["X-RateLimit-Remaining"] = str(remaining)
    response.headers["X-RateLimit-Reset"] = str(int(reset_time.timestamp()))
    return response


def _default_key(request: Request) -> str:
    try:
        tenant_id = get_tenant_id(request)
    except TenantContextError:
        tenant_id = ""
    return tenant_id or (request.remote_addr or "")


class RateLimitMiddleware:
    """Denies requests over the limiter's allowance; fails open on limiter errors."""

    def __init__(
        self,
        limiter: Limiter,
        key_extractor: Optional[KeyExtractor] = None,
        on_limit_exceeded: Optional[LimitExceededHandler] = None,
        skip_paths: Iterable[str] = (),
        options: Optional[RateLimitOptions] = None,
    ) -> None:
        if limiter is None:
            raise ValueError("limiter is required in rate limit config")
        self.limiter = limiter
        self.key_extractor: KeyExtractor = key_extractor or _default_key
        self.on_limit_exceeded: LimitExceededHandler = (
            on_limit_exceeded or default_rate_limit_error_handler
        )
        self.skip_paths = frozenset(skip_paths)
        self.options = options if options is not None else default_rate_limit_options()

    def _remaining(self, key: str) -> int:
        try:
            return self.limiter.remaining(key)
        except Exception:
            return 0

    def wrap(self, app: WSGIApp) -> WSGIApp:
        """Return a WSGI application that rate-limits requests to ``app``."""

        def limited_app(environ: dict, start_response: Any) -> Iterable[bytes]:
            request = Request(environ)
            if request.path in self.skip_paths:
                return app(environ, start_response)

            key = self.key_extractor(request)
            try:
                allowed = self.limiter.allow(key)
            except Exception as exc:
                logger.error("rate limiter error: %s", exc)
                return app(environ, start_response)

            if not allowed:
                remaining = self._remaining(key)
                reset_time = datetime.now(timezone.utc) + timedelta(
                    seconds=self.options.reset_window
                )
                handler = self.on_limit_exceeded(request, remaining, reset_time)
                return handler(environ, start_response)

            extra = [
                ("X-RateLimit-Remaining", str(self._remaining(key))),
                ("X-RateLimit-Limit", str(self.options.limit_per_window)),
            ]

            def start_with_headers(status, headers, exc_info=None):
                return start_response(status, list(headers) + extra, exc_info)

            return app(environ, start_with_headers)

        return limited_app