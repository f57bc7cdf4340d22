from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from todo_auth.domain.entities import AuthProvider, User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def get_by_email(
        self, email: str, provider: AuthProvider = AuthProvider.local
    ) -> Optional[User]:
        """Get user by normalised email within one provider"""
        pass

    @abstractmethod
    async def get_by_provider_user_id(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Optional[User]:
        """Get user by the subject an OAuth provider knows them by"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass

    @abstractmethod
    async def lock_for_update(self, user_id: UUID) -> Optional[User]:
        """Lock the user row until the current transaction ends"""
        pass
