"""
ThreatRadar - Identity Provider
Email/password authentication against Supabase Auth (GoTrue) over httpx.

AUTH_PROVIDER=none      → auth disabled, every request runs as the dev user
AUTH_PROVIDER=supabase  → GoTrue at SUPABASE_URL/auth/v1

GoTrue endpoints used:
  POST /auth/v1/token?grant_type=password   sign in
  POST /auth/v1/signup                      sign up
  POST /auth/v1/logout                      sign out
  POST /auth/v1/recover                     password reset email
  GET  /auth/v1/user                        resolve an access token
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from threatradar.config import get_settings
from threatradar.errors import AuthError

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    id: str
    email: str
    name: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "AuthUser":
        email = payload.get("email") or ""
        metadata = payload.get("user_metadata") or {}
        return cls(
            id=str(payload.get("id", "")),
            email=email,
            name=metadata.get("name") or email.split("@")[0],
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "name": self.name}


@dataclass
class Session:
    access_token: str
    user: AuthUser
    refresh_token: str = ""
    expires_in: int = 0


class IdentityProvider(ABC):

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str, name: Optional[str] = None) -> Optional[Session]:
        """Returns None when the account still needs email confirmation."""
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        ...

    @abstractmethod
    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def get_user(self, access_token: str) -> AuthUser:
        ...


class SupabaseIdentityProvider(IdentityProvider):

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.url = (url or settings.supabase_url).rstrip("/")
        self.key = key if key is not None else settings.supabase_key
        self.timeout = settings.store_timeout
        self._transport = transport

    def _headers(self, access_token: Optional[str] = None) -> dict:
        headers = {"apikey": self.key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return f"HTTP {resp.status_code}"
        if not isinstance(body, dict):
            return f"HTTP {resp.status_code}"
        return (
            body.get("error_description") or body.get("msg")
            or body.get("message") or body.get("error") or f"HTTP {resp.status_code}"
        )

    async def _request(self, method: str, path: str, access_token: Optional[str] = None, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(
                    method, f"{self.url}/auth/v1{path}", headers=self._headers(access_token), **kwargs,
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise AuthError("An unexpected error occurred")
        if resp.status_code >= 400:
            raise AuthError(self._error_message(resp))
        if not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError:
            raise AuthError("Malformed identity provider response")
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _session(body: dict) -> Session:
        try:
            return Session(
                access_token=body["access_token"],
                refresh_token=body.get("refresh_token", ""),
                expires_in=int(body.get("expires_in", 0)),
                user=AuthUser.from_payload(body.get("user") or {}),
            )
        except (KeyError, TypeError, ValueError):
            raise AuthError("Malformed session payload")

    async def sign_in(self, email: str, password: str) -> Session:
        body = await self._request(
            "POST", "/token", params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._session(body)
        logger.info(f"Signed in {session.user.email}")
        return session

    async def sign_up(self, email: str, password: str, name: Optional[str] = None) -> Optional[Session]:
        body = await self._request(
            "POST", "/signup",
            json={"email": email, "password": password, "data": {"name": name or email.split("@")[0]}},
        )
        if "access_token" in body:
            return self._session(body)
        return None

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)

    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request("POST", "/recover", params=params, json={"email": email})

    async def get_user(self, access_token: str) -> AuthUser:
        body = await self._request("GET", "/user", access_token=access_token)
        if not body.get("id"):
            raise AuthError("Invalid or expired token")
        return AuthUser.from_payload(body)


_identity_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> Optional[IdentityProvider]:
    """Configured identity provider, or None when auth is disabled."""
    global _identity_provider
    settings = get_settings()
    if not settings.auth_enabled:
        return None
    if _identity_provider is None:
        _identity_provider = SupabaseIdentityProvider()
    return _identity_provider
