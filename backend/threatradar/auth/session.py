"""
ThreatRadar - Auth Session
Holds the current authentication state for one consumer (a CLI, a test,
a UI bridge) and notifies subscribers whenever it changes.

    session = AuthSession(provider)
    unsubscribe = session.subscribe(lambda state: print(state.user))
    await session.sign_in("analyst@example.com", "secret")
    unsubscribe()

Each AuthSession is independent; there is no process-wide auth state.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from threatradar.auth.identity import AuthUser, IdentityProvider, Session
from threatradar.errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthState:
    user: Optional[AuthUser] = None
    session: Optional[Session] = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


Listener = Callable[[AuthState], None]


class AuthSession:

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._state = AuthState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. It is called immediately with the current
        state. Returns a function that removes the listener."""
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes):
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    def _set_session(self, session: Optional[Session]):
        self._update(user=session.user if session else None, session=session, loading=False)

    async def restore(self, access_token: Optional[str]) -> AuthState:
        """Resolve an existing token into the session, or clear it."""
        if not access_token:
            self._set_session(None)
            return self._state
        try:
            user = await self.provider.get_user(access_token)
        except AuthError as e:
            logger.warning(f"Could not restore session: {e}")
            self._set_session(None)
            return self._state
        self._set_session(Session(access_token=access_token, user=user))
        return self._state

    async def sign_in(self, email: str, password: str) -> Session:
        session = await self.provider.sign_in(email, password)
        self._set_session(session)
        return session

    async def sign_up(self, email: str, password: str, name: Optional[str] = None) -> Optional[Session]:
        session = await self.provider.sign_up(email, password, name)
        if session is not None:
            self._set_session(session)
        return session

    async def sign_out(self) -> None:
        current = self._state.session
        try:
            if current is not None:
                await self.provider.sign_out(current.access_token)
        finally:
            self._set_session(None)

    async def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        await self.provider.reset_password(email, redirect_to)
