from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_auth.app.repositories.refresh_token_repository import IRefreshTokenRepository
from todo_auth.domain.entities import RefreshToken


class RefreshTokenRepository(IRefreshTokenRepository):
    """Refresh token repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshToken]:
        """Get refresh token by digest"""
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_active_by_user_id(
        self, user_id: UUID, now: datetime
    ) -> List[RefreshToken]:
        """Get all non-revoked, unexpired tokens of a user"""
        stmt = select(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
            RefreshToken.expires_at > now,
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, refresh_token: RefreshToken) -> RefreshToken:
        """Create a new refresh token"""
        self.session.add(refresh_token)
        await self.session.flush()
        await self.session.refresh(refresh_token)
        return refresh_token

    async def update(self, refresh_token: RefreshToken) -> RefreshToken:
        """Update existing refresh token"""
        self.session.add(refresh_token)
        await self.session.flush()
        await self.session.refresh(refresh_token)
        return refresh_token

    async def mark_revoked(
        self, token_id: UUID, revoked_at: datetime, reason: Optional[str]
    ) -> bool:
        """Conditional revoke - only a token that is still unrevoked is updated"""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=revoked_at, revocation_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_active_by_user_id(
        self, user_id: UUID, now: datetime, reason: Optional[str]
    ) -> int:
        """Revoke all active tokens for a user"""
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .values(revoked_at=now, revocation_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
