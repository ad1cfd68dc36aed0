"""Tenant resolution, tenant context, per-tenant rate limiting and configuration presets for WSGI applications."""

__version__ = "1.0.0"