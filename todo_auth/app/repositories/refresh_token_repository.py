from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from todo_auth.domain.entities import RefreshToken


class IRefreshTokenRepository(ABC):
    """Refresh token repository interface - application layer"""

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[RefreshToken]:
        """Get refresh token by SHA-256 digest"""
        pass

    @abstractmethod
    async def get_active_by_user_id(
        self, user_id: UUID, now: datetime
    ) -> List[RefreshToken]:
        """Get all non-revoked, unexpired tokens of a user"""
        pass

    @abstractmethod
    async def create(self, refresh_token: RefreshToken) -> RefreshToken:
        """Create a new refresh token"""
        pass

    @abstractmethod
    async def update(self, refresh_token: RefreshToken) -> RefreshToken:
        """Update existing refresh token"""
        pass

    @abstractmethod
    async def mark_revoked(
        self, token_id: UUID, revoked_at: datetime, reason: Optional[str]
    ) -> bool:
        """Revoke a token only if it is not revoked yet. Returns True if this call revoked it."""
        pass

    @abstractmethod
    async def revoke_active_by_user_id(
        self, user_id: UUID, now: datetime, reason: Optional[str]
    ) -> int:
        """Revoke all active tokens of a user. Returns count of revoked tokens."""
        pass
