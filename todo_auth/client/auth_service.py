"""
Client-side session lifecycle

Signs in through AuthApi, keeps the session in a SessionStore and rotates
it before the access token lapses. Nothing is cached on the instance: each
call reads the store, so several services over one store stay consistent.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from todo_auth.app.use_cases.auth.dtos import AuthResponse, UserInfo
from todo_auth.client.api import AuthApi
from todo_auth.client.models import AuthSession
from todo_auth.client.session_store import SessionStore
from todo_auth.domain.base import utcnow
from todo_auth.domain.entities import AuthProvider
from todo_auth.libs.result import Error, ErrorKind, Result, Return

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = Error("NOT_SIGNED_IN", "Not signed in", ErrorKind.invalid_token)
SESSION_EXPIRED = Error(
    "SESSION_EXPIRED", "Session expired, please sign in again", ErrorKind.invalid_token
)

# Failures after which the stored refresh token can never succeed
TERMINAL_REFRESH_FAILURES = (ErrorKind.invalid_token, ErrorKind.validation)


class AuthService:
    def __init__(
        self,
        api: AuthApi,
        store: SessionStore,
        refresh_leeway: timedelta = timedelta(seconds=30),
        clock: Callable = utcnow,
    ):
        self.api = api
        self.store = store
        self.refresh_leeway = refresh_leeway
        self.clock = clock
        self._refresh_lock = asyncio.Lock()

    async def register(self, email: str, password: str) -> Result[AuthSession]:
        return await self._open_session(await self.api.register(email, password))

    async def login(self, email: str, password: str) -> Result[AuthSession]:
        return await self._open_session(await self.api.login(email, password))

    async def login_with_oauth(
        self, provider: AuthProvider, id_token: str
    ) -> Result[AuthSession]:
        return await self._open_session(await self.api.login_with_oauth(provider, id_token))

    async def get_session(self) -> Optional[AuthSession]:
        return await self.store.load()

    async def refresh(self) -> Result[AuthSession]:
        """Rotate the stored refresh token regardless of access token expiry"""
        async with self._refresh_lock:
            session = await self.store.load()
            if session is None:
                return Return.err(NOT_SIGNED_IN)
            return await self._rotate(session)

    async def logout(self) -> None:
        """
        Sign out.

        Server-side revocation is attempted but never blocks signing out: the
        local session is cleared even if the server cannot be reached.
        """
        try:
            fresh = await self._fresh_session()
            if fresh.is_ok():
                result = await self.api.logout(fresh.value.access_token)
                if result.is_err():
                    logger.warning(f"Server logout failed: {result.error.code}")
        finally:
            await self.store.clear()

    async def initialize(self) -> Optional[AuthSession]:
        """Restore the stored session at startup, rotating it when due"""
        result = await self._fresh_session()
        if result.is_err():
            await self.store.clear()
            return None
        return result.value

    async def get_access_token(self) -> Optional[str]:
        result = await self._fresh_session()
        if result.is_err():
            return None
        return result.value.access_token

    async def get_current_user(self) -> Result[UserInfo]:
        access_token = await self.get_access_token()
        if access_token is None:
            return Return.err(NOT_SIGNED_IN)
        return await self.api.me(access_token)

    async def _fresh_session(self) -> Result[AuthSession]:
        async with self._refresh_lock:
            session = await self.store.load()
            if session is None:
                return Return.err(NOT_SIGNED_IN)
            if not session.access_token_expiring(self.clock(), self.refresh_leeway):
                return Return.ok(session)
            return await self._rotate(session)

    async def _rotate(self, session: AuthSession) -> Result[AuthSession]:
        if session.refresh_token_expired(self.clock()):
            await self.store.clear()
            return Return.err(SESSION_EXPIRED)

        result = await self.api.refresh(session.refresh_token)
        if result.is_err():
            if result.error.kind in TERMINAL_REFRESH_FAILURES:
                logger.info(f"Refresh rejected ({result.error.code}), clearing session")
                await self.store.clear()
            return result

        return await self._persist(result.value)

    async def _open_session(self, result: Result[AuthResponse]) -> Result[AuthSession]:
        if result.is_err():
            return result
        # Waits out an in-flight refresh so its outcome cannot clobber the new session
        async with self._refresh_lock:
            return await self._persist(result.value)

    async def _persist(self, response: AuthResponse) -> Result[AuthSession]:
        session = AuthSession.from_auth_response(response)
        await self.store.save(session)
        return Return.ok(session)
