"""WSGI middleware that resolves the tenant of each request.

The resolved tenant is stored in the WSGI environ as a
:class:`~tenantkit.http_context.TenantContext`, where
:func:`~tenantkit.http_context.get_tenant_id` finds it.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from werkzeug.wrappers import Request, Response

from tenantkit.http_context import TenantContext, attach_tenant_context
from tenantkit.resolver import Resolver, TenantResolutionError

WSGIApp = Callable[..., Iterable[bytes]]
ErrorHandler = Callable[[Request, Exception], WSGIApp]


def default_error_handler(request: Request, error: Exception) -> Response:
    """Answer 400 Bad Request naming why resolution failed."""
    return Response(
        f"tenant resolution failed: {error}",
        status=400,
        mimetype="text/plain",
    )


class TenantMiddleware:
    """Rejects requests whose tenant cannot be resolved and tags the rest."""

    def __init__(
        self,
        resolver: Resolver,
        on_error: Optional[ErrorHandler] = None,
        skip_paths: Iterable[str] = (),
    ) -> None:
        if resolver is None:
            raise ValueError("resolver is required in middleware config")
        self.resolver = resolver
        self.on_error: ErrorHandler = on_error or default_error_handler
        self.skip_paths = frozenset(skip_paths)

    def wrap(self, app: WSGIApp) -> WSGIApp:
        """Return a WSGI application that resolves the tenant before ``app``."""

        def tenant_app(environ: dict, start_response: Any) -> Iterable[bytes]:
            request = Request(environ)
            if request.path in self.skip_paths:
                return app(environ, start_response)

            try:
                tenant_id = self.resolver.resolve(request)
            except Exception as exc:
                return self.on_error(request, exc)(environ, start_response)

            try:
                context = TenantContext(tenant_id, "system", "http-request")
            except ValueError as exc:
                error = TenantResolutionError(f"failed to create tenant context: {exc}")
                error.__cause__ = exc
                return self.on_error(request, error)(environ, start_response)

            attach_tenant_context(environ, context)
            return app(environ, start_response)

        return tenant_app