from datetime import datetime, timezone

import pytest
from werkzeug.test import Client
from werkzeug.wrappers import Request, Response

from tenantkit.memory_limiter import token_bucket_limiter
from tenantkit.middleware import TenantMiddleware
from tenantkit.ratelimit_middleware import (
    RateLimitMiddleware,
    default_rate_limit_error_handler,
)
from tenantkit.ratelimit_options import (
    custom_rate_limit_options,
    default_rate_limit_options,
    generous_rate_limit_options,
    per_second_rate_limit_options,
    strict_rate_limit_options,
)
from tenantkit.resolver import HeaderResolver


class MockLimiter:
    def __init__(self, allow_until=0, remaining_val=0):
        self.allow_count = 0
        self.allow_until = allow_until
        self.remaining_val = remaining_val
        self.keys = []

    def allow(self, key):
        self.keys.append(key)
        self.allow_count += 1
        return self.allow_count <= self.allow_until

    def allow_n(self, key, n):
        return self.allow(key)

    def remaining(self, key):
        return self.remaining_val

    def reset(self, key):
        self.allow_count = 0

    def health(self):
        return None

    def stats(self):
        return {"type": "mock"}


class FailingLimiter(MockLimiter):
    def allow(self, key):
        raise RuntimeError("backend down")


@Request.application
def ok_app(request):
    return Response("OK")


def test_limiter_required():
    with pytest.raises(ValueError):
        RateLimitMiddleware(None)


def test_valid_config_defaults():
    mw = RateLimitMiddleware(MockLimiter())
    assert mw.on_limit_exceeded is default_rate_limit_error_handler
    assert mw.options == default_rate_limit_options()


def test_allowed_request_passes_with_headers():
    mw = RateLimitMiddleware(MockLimiter(allow_until=1000, remaining_val=100))
    response = Client(mw.wrap(ok_app)).get("/")
    assert response.status_code == 200
    assert response.headers["X-RateLimit-Remaining"] == "100"
    assert response.headers["X-RateLimit-Limit"] == "100"


def test_denied_request_gets_429():
    mw = RateLimitMiddleware(MockLimiter(allow_until=0, remaining_val=0))
    response = Client(mw.wrap(ok_app)).get("/")
    assert response.status_code == 429
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.get_data(as_text=True) == "rate limit exceeded"


def test_denied_reset_header_is_about_one_window_ahead():
    mw = RateLimitMiddleware(MockLimiter(allow_until=0))
    now = datetime.now(timezone.utc).timestamp()
    response = Client(mw.wrap(ok_app)).get("/")
    reset = int(response.headers["X-RateLimit-Reset"])
    assert abs(reset - (now + 60)) <= 2


def test_skip_paths_bypass_limiter():
    called = []

    @Request.application
    def app(request):
        called.append(True)
        return Response("OK")

    limiter = MockLimiter(allow_until=0)
    mw = RateLimitMiddleware(limiter, skip_paths=["/health", "/metrics"])
    response = Client(mw.wrap(app)).get("/health")
    assert response.status_code == 200
    assert called == [True]
    assert limiter.allow_count == 0


def test_custom_key_extractor():
    limiter = MockLimiter(allow_until=10, remaining_val=100)
    mw = RateLimitMiddleware(limiter, key_extractor=lambda request: "custom-key")
    Client(mw.wrap(ok_app)).get("/")
    assert limiter.keys == ["custom-key"]


def test_default_key_uses_tenant_id():
    limiter = MockLimiter(allow_until=10, remaining_val=5)
    limited = RateLimitMiddleware(limiter).wrap(ok_app)
    app = TenantMiddleware(HeaderResolver("X-Tenant-ID")).wrap(limited)
    response = Client(app).get("/", headers={"X-Tenant-ID": "tenant1"})
    assert response.status_code == 200
    assert limiter.keys == ["tenant1"]


def test_default_key_falls_back_to_remote_addr():
    limiter = MockLimiter(allow_until=10, remaining_val=5)
    mw = RateLimitMiddleware(limiter)
    Client(mw.wrap(ok_app)).get("/", environ_overrides={"REMOTE_ADDR": "10.0.0.7"})
    assert limiter.keys == ["10.0.0.7"]


def test_real_limiter_allows_burst_then_denies():
    limiter = token_bucket_limiter(2, 5)
    successes = []

    @Request.application
    def app(request):
        successes.append(True)
        return Response("OK")

    mw = RateLimitMiddleware(limiter, key_extractor=lambda request: "test-key")
    client = Client(mw.wrap(app))
    codes = [client.get("/").status_code for _ in range(6)]
    assert len(successes) == 5
    assert codes.count(429) == 1


def test_limiter_error_fails_open():
    mw = RateLimitMiddleware(FailingLimiter())
    response = Client(mw.wrap(ok_app)).get("/")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"


def test_limit_header_uses_configured_options():
    opts = custom_rate_limit_options(50, 30.0)
    mw = RateLimitMiddleware(MockLimiter(allow_until=100, remaining_val=99), options=opts)
    response = Client(mw.wrap(ok_app)).get("/test")
    assert response.headers["X-RateLimit-Limit"] == "50"
    assert response.headers["X-RateLimit-Remaining"] == "99"


def test_reset_time_uses_configured_window():
    captured = {}

    def handler(request, remaining, reset_time):
        captured["delta"] = (reset_time - datetime.now(timezone.utc)).total_seconds()
        captured["remaining"] = remaining
        return Response("limited", status=429)

    mw = RateLimitMiddleware(
        MockLimiter(allow_until=0, remaining_val=3),
        on_limit_exceeded=handler,
        options=custom_rate_limit_options(100, 45.0),
    )
    response = Client(mw.wrap(ok_app)).get("/test")
    assert response.status_code == 429
    assert captured["remaining"] == 3
    assert 44.9 <= captured["delta"] <= 45.1


@pytest.mark.parametrize(
    "opts",
    [
        default_rate_limit_options(),
        strict_rate_limit_options(),
        generous_rate_limit_options(),
        per_second_rate_limit_options(),
    ],
)
def test_preset_options_are_kept(opts):
    mw = RateLimitMiddleware(MockLimiter(allow_until=100, remaining_val=99), options=opts)
    assert mw.options.limit_per_window == opts.limit_per_window
    assert mw.options.reset_window == opts.reset_window


def test_configurations_are_isolated():
    mw1 = RateLimitMiddleware(MockLimiter(), options=custom_rate_limit_options(30, 30.0))
    mw2 = RateLimitMiddleware(MockLimiter(), options=custom_rate_limit_options(500, 60.0))
    assert mw1.options.limit_per_window == 30
    assert mw2.options.limit_per_window == 500
    assert mw1.options.reset_window != mw2.options.reset_window