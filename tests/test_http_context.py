import pytest
from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request

from tenantkit.http_context import (
    TenantContext,
    TenantContextError,
    attach_tenant_context,
    get_tenant_context,
    get_tenant_id,
    with_tenant_id,
)


def _request() -> Request:
    return Request(EnvironBuilder(path="/", method="GET").get_environ())


def _request_with_context() -> Request:
    return attach_tenant_context(_request(), TenantContext("tenant1", "user1", "req1"))


def test_get_tenant_id_valid_context():
    assert get_tenant_id(_request_with_context()) == "tenant1"


def test_get_tenant_id_missing_context():
    with pytest.raises(TenantContextError):
        get_tenant_id(_request())


def test_get_tenant_context_valid_context():
    context = get_tenant_context(_request_with_context())
    assert context.tenant_id == "tenant1"
    assert context.user_id == "user1"
    assert context.request_id == "req1"


def test_get_tenant_context_missing_context():
    with pytest.raises(TenantContextError):
        get_tenant_context(_request())


def test_get_tenant_context_from_environ():
    environ = EnvironBuilder(path="/").get_environ()
    attach_tenant_context(environ, TenantContext("tenant1", "user1", "req1"))
    assert get_tenant_id(environ) == "tenant1"


def test_with_tenant_id_valid_tenant():
    request = with_tenant_id(_request(), "tenant1")
    assert get_tenant_id(request) == "tenant1"
    assert isinstance(request, Request)


def test_with_tenant_id_sets_system_defaults():
    context = get_tenant_context(with_tenant_id(_request(), "tenant1"))
    assert context.user_id == "system"
    assert context.request_id == "http-context"


def test_with_tenant_id_empty_tenant():
    with pytest.raises(ValueError):
        with_tenant_id(_request(), "")


def test_with_tenant_id_leaves_original_untouched():
    original = _request()
    with_tenant_id(original, "tenant1")
    with pytest.raises(TenantContextError):
        get_tenant_id(original)


def test_tenant_context_rejects_empty_tenant():
    with pytest.raises(ValueError):
        TenantContext("")