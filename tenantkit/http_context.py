"""Tenant context carried through a WSGI request.

The context lives in the WSGI environ, so it travels with the request
through every middleware and application that shares that environ.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, MutableMapping

TENANT_CONTEXT_KEY = "tenantkit.tenant_context"


class TenantContextError(LookupError):
    """Raised when a request carries no tenant context."""


@dataclass(frozen=True)
class TenantContext:
    """Identifies the tenant, user and request an operation runs for."""

    tenant_id: str
    user_id: str = "system"
    request_id: str = "http-context"

    def __post_init__(self) -> None:
        if not self.tenant_id:
            raise ValueError("tenant ID cannot be empty")


def _environ(request: Any) -> MutableMapping[str, Any]:
    if isinstance(request, MutableMapping):
        return request
    return request.environ


def get_tenant_context(request: Any) -> TenantContext:
    """Return the tenant context of ``request`` (a request object or WSGI environ)."""
    context = _environ(request).get(TENANT_CONTEXT_KEY)
    if not isinstance(context, TenantContext):
        raise TenantContextError("tenant context not found in request")
    return context


def get_tenant_id(request: Any) -> str:
    """Return the tenant ID of ``request``."""
    return get_tenant_context(request).tenant_id


def attach_tenant_context(request: Any, context: TenantContext) -> Any:
    """Store ``context`` in ``request`` in place and return ``request``."""
    _environ(request)[TENANT_CONTEXT_KEY] = context
    return request


def with_tenant_id(request: Any, tenant_id: str) -> Any:
    """Return a copy of ``request`` that carries a context for ``tenant_id``.

    The original request is left unchanged.
    """
    context = TenantContext(tenant_id, "system", "http-context")
    environ = dict(_environ(request))
    environ[TENANT_CONTEXT_KEY] = context
    if isinstance(request, MutableMapping):
        return environ
    return type(request)(environ)