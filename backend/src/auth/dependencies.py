"""FastAPI dependencies for authentication.

This module provides dependency injection functions for:
- Extracting and validating JWT bearer tokens from requests
- Resolving the calling tenant

Usage:
    @router.post("/messages/send")
    def send(tenant_id: int = Depends(get_current_tenant_id)):
        ...
"""

from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from database import get_db
from models import Tenant
from .jwt import decode_token


# HTTP Bearer token security scheme; missing tokens are reported as 401 below
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_tenant_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> int:
    """Extract and validate the bearer token, returning the caller's tenant id.

    This dependency:
    1. Extracts Bearer token from Authorization header
    2. Validates token signature and expiration
    3. Reads the tenant_id claim
    4. Checks the tenant exists

    Args:
        credentials: HTTP Bearer token from request header
        db: Database session

    Returns:
        int: Tenant id for the current request

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or the tenant is unknown
    """
    if credentials is None:
        raise _unauthorized("Missing bearer token")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(str(e))

    tenant_claim = payload.get("tenant_id")
    if isinstance(tenant_claim, bool) or not isinstance(tenant_claim, (int, str)):
        raise _unauthorized("Invalid token: missing tenant_id claim")
    try:
        tenant_id = int(tenant_claim)
    except ValueError:
        raise _unauthorized("Invalid token claims: tenant_id must be an integer")

    if db.get(Tenant, tenant_id) is None:
        raise _unauthorized("Unknown tenant")

    return tenant_id


# Type alias for dependency injection
CurrentTenantId = Annotated[int, Depends(get_current_tenant_id)]
