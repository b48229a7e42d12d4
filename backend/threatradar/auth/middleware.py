"""
ThreatRadar - Auth Middleware
Validates bearer tokens against the identity provider.

Usage in routes:
    from threatradar.auth.middleware import require_auth

    @router.get("/protected")
    async def protected(user=Depends(require_auth)):
        return {"hello": user.email}

Disable for development:
    AUTH_PROVIDER=none  → all routes open (default)
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from threatradar.auth.identity import AuthUser, IdentityProvider, get_identity_provider
from threatradar.errors import AuthError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

DEV_USER = AuthUser(id="dev", email="dev@localhost", name="dev")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider: Optional[IdentityProvider] = Depends(get_identity_provider),
) -> AuthUser:
    """Resolve the caller. Returns the dev user when auth is disabled."""
    if provider is None:
        return DEV_USER

    if not credentials:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    try:
        return await provider.get_user(credentials.credentials)
    except AuthError as e:
        logger.info(f"Rejected token: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def require_auth(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency: require any authenticated user."""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
