"""Middleware for tenant context extraction.

Attaches the caller's tenant_id (from the bearer token) to request.state so
that access logs and error logs can be correlated per tenant. Authentication
itself is enforced by auth.dependencies.get_current_tenant_id.
"""

from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import jwt

from auth.jwt import decode_token


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Middleware to extract and attach tenant_id to request state.

    This middleware:
    1. Extracts Bearer token from Authorization header
    2. Decodes JWT and extracts tenant_id claim
    3. Attaches tenant_id to request.state
    4. Handles missing/invalid tokens gracefully (sets None)

    The middleware does NOT reject requests; the get_current_tenant_id
    dependency does.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and attach tenant_id to request.state.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response: FastAPI response object
        """
        request.state.tenant_id = None

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return await call_next(request)

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return await call_next(request)

        try:
            payload = decode_token(parts[1])
            tenant_claim = payload.get("tenant_id")
            if tenant_claim is not None:
                request.state.tenant_id = int(tenant_claim)
        except (jwt.InvalidTokenError, TypeError, ValueError):
            # Actual validation happens in get_current_tenant_id
            pass

        return await call_next(request)


def get_tenant_id_from_request(request: Request) -> Optional[int]:
    """Return request.state.tenant_id, or None if unavailable."""
    return getattr(request.state, "tenant_id", None)
