"""JWT token generation and validation

Bearer tokens identify the calling tenant. The routing layer derives the
tenant from the token; clients never pass a tenant id in the request body.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): Caller identity (API client or operator name)
  Example: "crm-sync"
  Purpose: Audit and log correlation

- iat (Issued At): Unix timestamp when token was created
- exp (Expiration): Unix timestamp when token expires
  (iat + JWT_EXPIRY_MINUTES, default 60 minutes)

Custom Claims:
- tenant_id: Integer id of the tenant the caller acts for
  Purpose: Multi-tenant isolation - every send is validated against it

Security Properties:
- Algorithm: JWT_ALGORITHM (HS256 by default, HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET setting
- Stateless validation (the tenant row is checked by the dependency)

Example Token Payload:
{
  "sub": "crm-sync",
  "tenant_id": 42,
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
import jwt

from config import get_settings


def create_access_token(tenant_id: int, subject: str, expiry_minutes: Optional[int] = None) -> str:
    """Create a JWT access token for a tenant-scoped caller.

    Args:
        tenant_id: Tenant the caller acts for
        subject: Caller identity stored in `sub`
        expiry_minutes: Token lifetime; defaults to JWT_EXPIRY_MINUTES

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    if expiry_minutes is None:
        expiry_minutes = settings.JWT_EXPIRY_MINUTES

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expiry_minutes)

    payload = {
        'sub': subject,
        'tenant_id': tenant_id,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload with claims

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    settings = get_settings()

    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
