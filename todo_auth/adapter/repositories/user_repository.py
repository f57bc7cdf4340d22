from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_auth.app.repositories.errors import DuplicateRecordError
from todo_auth.app.repositories.user_repository import IUserRepository
from todo_auth.domain.base import utcnow
from todo_auth.domain.entities import AuthProvider, User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(
        self, email: str, provider: AuthProvider = AuthProvider.local
    ) -> Optional[User]:
        """Get user by email within one provider"""
        stmt = select(User).where(User.email == email, User.auth_provider == provider)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_provider_user_id(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Optional[User]:
        """Get user by OAuth provider subject"""
        stmt = select(User).where(
            User.auth_provider == provider,
            User.provider_user_id == provider_user_id,
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRecordError(f"User {user.email} already exists") from exc
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Update existing user"""
        user.updated_at = utcnow()
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def lock_for_update(self, user_id: UUID) -> Optional[User]:
        """
        SELECT ... FOR UPDATE on the user row.

        Serialises refresh token rotation for one user across connections.
        SQLite has no row locks and renders this as a plain SELECT.
        """
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await self.session.exec(stmt)
        return result.one_or_none()
