"""
In-memory persistence

Fallback store used when no database is configured, and by tests that need
real transactional behaviour without a database. Writes are staged per unit of
work and applied on commit; reads see committed rows plus the unit's own
staged rows (read committed).
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, TypeVar
from uuid import UUID

from todo_auth.app.repositories.errors import DuplicateRecordError
from todo_auth.app.repositories.refresh_token_repository import IRefreshTokenRepository
from todo_auth.app.repositories.user_repository import IUserRepository
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.domain.base import utcnow
from todo_auth.domain.entities import AuthProvider, RefreshToken, User

E = TypeVar("E", User, RefreshToken)


def _clone(entity: E) -> E:
    # Callers never share instances with the store
    return type(entity)(**entity.model_dump())


class InMemoryDatabase:
    """Committed rows, keyed by primary key"""

    def __init__(self):
        self.users: Dict[UUID, User] = {}
        self.refresh_tokens: Dict[UUID, RefreshToken] = {}


class _StagedTable:
    def __init__(self, committed: Dict[UUID, E]):
        self.committed = committed
        self.pending: Dict[UUID, E] = {}

    def get(self, key: UUID) -> Optional[E]:
        row = self.pending.get(key)
        if row is None:
            row = self.committed.get(key)
        return _clone(row) if row is not None else None

    def rows(self) -> Iterable[E]:
        merged = {**self.committed, **self.pending}
        return [_clone(row) for row in merged.values()]

    def stage(self, row: E) -> None:
        self.pending[row.id] = _clone(row)

    def apply(self) -> None:
        self.committed.update(self.pending)
        self.pending.clear()


class InMemoryUserRepository(IUserRepository):
    def __init__(self, table: _StagedTable):
        self.table = table

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self.table.get(user_id)

    async def get_by_email(
        self, email: str, provider: AuthProvider = AuthProvider.local
    ) -> Optional[User]:
        for user in self.table.rows():
            if user.email == email and user.auth_provider == provider:
                return user
        return None

    async def get_by_provider_user_id(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Optional[User]:
        for user in self.table.rows():
            if user.auth_provider == provider and user.provider_user_id == provider_user_id:
                return user
        return None

    async def create(self, user: User) -> User:
        if await self.get_by_email(user.email, user.auth_provider) is not None:
            raise DuplicateRecordError(f"User {user.email} already exists")
        if user.provider_user_id is not None and (
            await self.get_by_provider_user_id(user.auth_provider, user.provider_user_id)
            is not None
        ):
            raise DuplicateRecordError("Provider subject already linked")
        self.table.stage(user)
        return user

    async def update(self, user: User) -> User:
        user.updated_at = utcnow()
        self.table.stage(user)
        return user

    async def lock_for_update(self, user_id: UUID) -> Optional[User]:
        # Per-user asyncio locks do the serialisation for this store
        return self.table.get(user_id)


class InMemoryRefreshTokenRepository(IRefreshTokenRepository):
    def __init__(self, table: _StagedTable):
        self.table = table

    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshToken]:
        for token in self.table.rows():
            if token.token_hash == token_hash:
                return token
        return None

    async def get_active_by_user_id(
        self, user_id: UUID, now: datetime
    ) -> List[RefreshToken]:
        return [
            token
            for token in self.table.rows()
            if token.user_id == user_id and token.is_active(now)
        ]

    async def create(self, refresh_token: RefreshToken) -> RefreshToken:
        if await self.get_by_token_hash(refresh_token.token_hash) is not None:
            raise DuplicateRecordError("Refresh token already exists")
        self.table.stage(refresh_token)
        return refresh_token

    async def update(self, refresh_token: RefreshToken) -> RefreshToken:
        self.table.stage(refresh_token)
        return refresh_token

    async def mark_revoked(
        self, token_id: UUID, revoked_at: datetime, reason: Optional[str]
    ) -> bool:
        token = self.table.get(token_id)
        if token is None or token.is_revoked:
            return False
        token.revoked_at = revoked_at
        token.revocation_reason = reason
        self.table.stage(token)
        return True

    async def revoke_active_by_user_id(
        self, user_id: UUID, now: datetime, reason: Optional[str]
    ) -> int:
        active = await self.get_active_by_user_id(user_id, now)
        for token in active:
            token.revoked_at = now
            token.revocation_reason = reason
            self.table.stage(token)
        return len(active)


class InMemoryUnitOfWork(UnitOfWork):
    """In-memory implementation of UnitOfWork pattern"""

    def __init__(self, database: InMemoryDatabase):
        self.database = database

    async def __aenter__(self):
        self._users = _StagedTable(self.database.users)
        self._refresh_tokens = _StagedTable(self.database.refresh_tokens)
        self.users = InMemoryUserRepository(self._users)
        self.refresh_tokens = InMemoryRefreshTokenRepository(self._refresh_tokens)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        self._users.apply()
        self._refresh_tokens.apply()

    async def rollback(self):
        self._users.pending.clear()
        self._refresh_tokens.pending.clear()

    async def ping(self) -> None:
        return None
