"""Strategies for finding the tenant ID of an incoming HTTP request.

Tenants can be taken from the subdomain, a header, a URL path segment or a
JWT claim, and resolvers can be chained so that later ones act as
fallbacks for earlier ones.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

TokenExtractor = Callable[[Any], str]
ClaimParser = Callable[[str, str], str]


class TenantResolutionError(Exception):
    """Raised when no tenant ID can be found in a request."""


class Resolver(Protocol):
    """Anything that can find the tenant ID of a request."""

    def resolve(self, request: Any) -> str: ...


class SubdomainResolver:
    """Takes the tenant from a single-level subdomain of ``domain``.

    ``tenant123.example.com`` resolves to ``tenant123``.
    """

    def __init__(self, domain: str) -> None:
        self.domain = domain

    def resolve(self, request: Any) -> str:
        host = request.host or request.headers.get("Host", "")
        if not host:
            raise TenantResolutionError("host header not found in request")

        host = host.split(":")[0]
        if host == self.domain:
            raise TenantResolutionError(f"no tenant subdomain found in host: {host}")

        suffix = "." + self.domain
        if not host.endswith(suffix):
            raise TenantResolutionError(
                f"host {host} does not belong to domain {self.domain}"
            )

        subdomain = host[: -len(suffix)]
        if not subdomain:
            raise TenantResolutionError(
                f"empty subdomain extracted from host: {host}"
            )
        if "." in subdomain:
            raise TenantResolutionError(f"nested subdomains not allowed, host: {host}")
        return subdomain


class HeaderResolver:
    """Takes the tenant from an HTTP header, ``X-Tenant-ID`` by default."""

    def __init__(self, header_name: str = "X-Tenant-ID") -> None:
        self.header_name = header_name or "X-Tenant-ID"

    def resolve(self, request: Any) -> str:
        value = request.headers.get(self.header_name, "")
        if not value:
            raise TenantResolutionError(
                f"header {self.header_name} not found or empty in request"
            )
        trimmed = value.strip()
        if not trimmed:
            raise TenantResolutionError(
                f"header {self.header_name} contains only whitespace"
            )
        return trimmed


class PathResolver:
    """Takes the tenant from a URL path segment after ``prefix``.

    With prefix ``/tenants`` and segment 0, ``/tenants/tenant123/users``
    resolves to ``tenant123``.
    """

    def __init__(self, prefix: str = "", path_segment: int = 0) -> None:
        self.prefix = prefix
        self.path_segment = path_segment

    def resolve(self, request: Any) -> str:
        path = request.path
        segments = path.removeprefix("/").split("/")

        start = 0
        if self.prefix:
            prefix_segments = self.prefix.removeprefix("/").split("/")
            if len(segments) < len(prefix_segments):
                raise TenantResolutionError(
                    f"path does not have enough segments for prefix: {self.prefix}"
                )
            if segments[: len(prefix_segments)] != prefix_segments:
                raise TenantResolutionError(
                    f"path does not start with expected prefix: {self.prefix}"
                )
            start = len(prefix_segments)

        index = start + self.path_segment
        if index >= len(segments):
            raise TenantResolutionError(
                f"path segment {self.path_segment} not found in path: {path}"
            )

        tenant_id = segments[index].strip()
        if not tenant_id:
            raise TenantResolutionError(
                f"empty tenant ID at path segment {self.path_segment} in path: {path}"
            )
        return tenant_id


class JWTResolver:
    """Takes the tenant from a JWT claim, ``tenant_id`` by default.

    ``token_extractor`` finds the token in the request and ``claim_parser``
    reads the named claim from it.
    """

    def __init__(
        self,
        claim_name: str = "tenant_id",
        token_extractor: Optional[TokenExtractor] = None,
        claim_parser: Optional[ClaimParser] = None,
    ) -> None:
        self.claim_name = claim_name or "tenant_id"
        self.token_extractor = token_extractor
        self.claim_parser = claim_parser

    def resolve(self, request: Any) -> str:
        if self.token_extractor is None:
            raise TenantResolutionError("JWT token extractor not configured")
        if self.claim_parser is None:
            raise TenantResolutionError("JWT claim parser not configured")

        try:
            token = self.token_extractor(request)
        except Exception as exc:
            raise TenantResolutionError(f"failed to extract JWT token: {exc}") from exc
        if not token:
            raise TenantResolutionError("JWT token not found in request")

        try:
            tenant_id = self.claim_parser(token, self.claim_name)
        except Exception as exc:
            raise TenantResolutionError(
                f"failed to extract tenant claim from JWT: {exc}"
            ) from exc
        if not tenant_id:
            raise TenantResolutionError(
                f"tenant ID claim {self.claim_name} is empty in JWT"
            )
        return tenant_id


def extract_bearer_token(request: Any) -> str:
    """Return the token of an ``Authorization: Bearer <token>`` header."""
    header = request.headers.get("Authorization", "")
    if not header:
        raise TenantResolutionError("Authorization header not found")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise TenantResolutionError(
            "invalid Authorization header format, expected 'Bearer <token>'"
        )
    return parts[1]


class ChainResolver:
    """Tries resolvers in order and returns the first tenant ID found."""

    def __init__(self, *resolvers: Resolver) -> None:
        self.resolvers = list(resolvers)

    def resolve(self, request: Any) -> str:
        last_error: Optional[TenantResolutionError] = None
        for resolver in self.resolvers:
            try:
                return resolver.resolve(request)
            except TenantResolutionError as exc:
                last_error = exc
        if last_error is not None:
            raise last_error
        raise TenantResolutionError("no resolvers available")


def chain_resolvers(*resolvers: Resolver) -> ChainResolver:
    """Combine ``resolvers`` into one that falls back from each to the next."""
    return ChainResolver(*resolvers)