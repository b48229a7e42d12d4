"""
ThreatRadar - Auth Routes
POST /api/v1/auth/login           → Sign in, get access token
POST /api/v1/auth/signup          → Create account
POST /api/v1/auth/logout          → Revoke current token
POST /api/v1/auth/reset-password  → Send password reset email
GET  /api/v1/auth/me              → Current user info
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from threatradar.auth.identity import AuthUser, IdentityProvider, get_identity_provider
from threatradar.auth.middleware import require_auth, security
from threatradar.errors import AuthError

auth_router = APIRouter(prefix="/auth", tags=["Authentication"])


class Credentials(BaseModel):
    email: str
    password: str
    name: Optional[str] = None


class ResetRequest(BaseModel):
    email: str
    redirect_to: Optional[str] = None


def _require_provider(provider: Optional[IdentityProvider]) -> IdentityProvider:
    if provider is None:
        raise HTTPException(status_code=400, detail="Authentication is disabled (AUTH_PROVIDER=none)")
    return provider


@auth_router.post("/login")
async def login(body: Credentials, provider=Depends(get_identity_provider)):
    provider = _require_provider(provider)
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password required")
    try:
        session = await provider.sign_in(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_in": session.expires_in,
        "user": session.user.to_dict(),
    }


@auth_router.post("/signup")
async def signup(body: Credentials, provider=Depends(get_identity_provider)):
    provider = _require_provider(provider)
    try:
        session = await provider.sign_up(body.email, body.password, body.name)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if session is None:
        return {"ok": True, "confirmation_required": True}
    return {"ok": True, "confirmation_required": False, "access_token": session.access_token,
            "user": session.user.to_dict()}


@auth_router.post("/logout")
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider=Depends(get_identity_provider),
):
    provider = _require_provider(provider)
    if credentials:
        try:
            await provider.sign_out(credentials.credentials)
        except AuthError as e:
            raise HTTPException(status_code=401, detail=str(e))
    return {"ok": True}


@auth_router.post("/reset-password")
async def reset_password(body: ResetRequest, provider=Depends(get_identity_provider)):
    provider = _require_provider(provider)
    try:
        await provider.reset_password(body.email, body.redirect_to)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True}


@auth_router.get("/me")
async def me(user: AuthUser = Depends(require_auth), provider=Depends(get_identity_provider)):
    return {**user.to_dict(), "auth_enabled": provider is not None}
