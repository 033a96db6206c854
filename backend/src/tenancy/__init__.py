"""Tenant context for request-scoped logging."""

from .middleware import TenantContextMiddleware, get_tenant_id_from_request

__all__ = ["TenantContextMiddleware", "get_tenant_id_from_request"]
