# tenantkit

Multi-tenancy building blocks for WSGI applications:

- **Tenant resolution**: work out which tenant a request belongs to from a
  header, a subdomain, a URL path segment or a JWT claim, with fallback
  chains.
- **Tenant context**: the resolved tenant is stored in the WSGI environ so
  that handlers can read it back.
- **Rate limiting per tenant**: in-memory limiters (token bucket, sliding
  window, fixed window) for a single process, and a Redis-backed limiter for
  deployments with several instances.
- **Presets** for rate-limit options and for request and system timeouts.
- A **no-op metrics** sink for development and tests.

## Resolving tenants

```python
from tenantkit.resolver import HeaderResolver, SubdomainResolver, chain_resolvers
from tenantkit.middleware import TenantMiddleware
from tenantkit.http_context import get_tenant_id

resolver = chain_resolvers(
    HeaderResolver("X-Tenant-ID"),
    SubdomainResolver("example.com"),
)

tenants = TenantMiddleware(resolver=resolver, skip_paths=["/health"])
application = tenants.wrap(app)
```

`TenantMiddleware.wrap` returns a WSGI application. For each request it runs
the resolver on a `werkzeug` `Request` and stores a `TenantContext` (tenant
ID, user ID `"system"`, request ID `"http-request"`) in the environ.

In `tenantkit.http_context`:

- `get_tenant_id(request)` returns the tenant's identifier and
  `get_tenant_context(request)` the whole `TenantContext`. Both accept a
  request object or a WSGI environ and raise `TenantContextError` when no
  tenant context is present.
- `attach_tenant_context(request, context)` stores a context in place.
- `with_tenant_id(request, tenant_id)` returns a copy of the request (or
  environ) carrying a new context; the original is left unchanged.
- `TenantContext` raises `ValueError` for an empty tenant ID.

Requests whose tenant cannot be resolved are answered with
`400 Bad Request` by `default_error_handler`. To answer differently, pass
`on_error`: a callable taking the request and the exception and returning a
WSGI application (for example a `werkzeug` `Response`). Paths listed in
`skip_paths` pass through untouched.

Resolvers available in `tenantkit.resolver`:

| Resolver | Takes the tenant from |
| --- | --- |
| `HeaderResolver` | a request header (`X-Tenant-ID` by default), trimmed |
| `SubdomainResolver` | a single-level subdomain of the configured domain |
| `PathResolver` | a URL path segment after an optional prefix |
| `JWTResolver` | a claim (`tenant_id` by default), using a token extractor and a claim parser you supply |
| `ChainResolver` | the first of several resolvers that succeeds |

Resolution failures raise `TenantResolutionError`; a chain re-raises the
last one. `extract_bearer_token` reads the token from an
`Authorization: Bearer token` header and is a ready made token extractor for
`JWTResolver`. Decoding and verifying the token is up to the claim parser.

## Rate limiting

```python
from tenantkit.memory_limiter import token_bucket_limiter
from tenantkit.ratelimit_middleware import RateLimitMiddleware
from tenantkit.ratelimit_options import strict_rate_limit_options

limiter = token_bucket_limiter(10, 20)  # 10 requests per second, bursts of 20

limited = RateLimitMiddleware(
    limiter=limiter,
    skip_paths=["/health"],
    options=strict_rate_limit_options(),
)
application = tenants.wrap(limited.wrap(app))
```

By default the rate-limit key is the tenant ID, falling back to the client
address, so place the rate limiter inside the tenant middleware as above.
Pass `key_extractor` to choose another key. Allowed responses carry
`X-RateLimit-Remaining` and `X-RateLimit-Limit` (the latter from the
options). Refused requests are handed to `on_limit_exceeded`, which by
default (`default_rate_limit_error_handler`) answers `429 Too Many Requests`
with `X-RateLimit-Remaining` and `X-RateLimit-Reset` (now plus the options'
reset window, as a Unix timestamp). If the limiter itself raises, the error
is logged and the request is let through.

Every limiter offers the same methods: `allow`, `allow_n`, `remaining`,
`reset`, `health` and `stats`.

- `token_bucket_limiter`, `sliding_window_limiter` and `fixed_window_limiter`
  in `tenantkit.memory_limiter` build a `MemoryLimiter`; it can also be built
  from a `MemoryLimiterConfig` naming an `Algorithm`. Its `allow` and
  `allow_n` reject empty or whitespace-only keys with `ValueError`. The
  underlying `TokenBucket`, `SliddingWindow`-free classes `TokenBucket`,
  `SlidingWindow` and `FixedWindow` can be used directly. These keep state in
  the process and log a warning when the `ENV` environment variable is
  `production`.
- `RedisLimiter` in `tenantkit.redis_limiter` runs its checks as atomic Redis
  scripts, so several instances share one budget. Give it your own `redis`
  client and a `RedisLimiterConfig` (`algorithm`, `limit`, `window` in
  seconds), or let `RedisLimiter.from_address` open the connection from
  `redis_addr`, `password` and `db` and close it again with `close()` (or by
  using the limiter as a context manager). Connection and Redis failures
  raise `RedisLimiterError`; invalid settings raise `ValueError`.

Option presets in `tenantkit.ratelimit_options`, all returning
`RateLimitOptions`: `default_rate_limit_options()` (100 per minute),
`strict_rate_limit_options()` (30 per minute),
`generous_rate_limit_options()` (500 per minute),
`per_second_rate_limit_options()` (10 per second), and
`custom_rate_limit_options(limit_per_window, reset_window)`, which replaces
non-positive values with the defaults.

## Timeouts

`tenantkit.timeouts` holds `RequestTimeoutConfig` and `TimeoutConfig`
(values in seconds) with default, fast and relaxed presets
(`default_timeout_config()`, `fast_timeout_config()`,
`relaxed_timeout_config()` and their request-level counterparts) plus
`custom_request_timeout_config` and `custom_timeout_config`, which replace
missing or non-positive values with the defaults.

## Metrics

`tenantkit.noop_metrics.NoOpMetrics` accepts every metrics call
(`record_request`, `record_query`, `record_error`, `record_quota_usage`,
`record_rate_limit`, `record_cache_hit`) and discards it, keeping only a
count in its `discarded` property.

## What it does not do

tenantkit is a library. It has no command and starts no server: wrap your
own WSGI application and serve it with a WSGI server of your choice. The
timeout presets are plain values; nothing in the package applies them. It
does not store tenants anywhere or check that a resolved tenant exists, and
it does not verify JWTs itself.