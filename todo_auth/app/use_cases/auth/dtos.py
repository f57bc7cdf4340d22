"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the auth domain.
Shared by the HTTP layer and the client package.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from todo_auth.domain.entities import AuthProvider, User


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(BaseModel):
    """
    Register command - represents validated registration intent

    Created by API layer after request validation passes.
    """

    email: str
    password: str


# ============================================================================
# Response DTOs
# ============================================================================


class UserInfo(BaseModel):
    """User information in authentication responses"""

    id: UUID
    email: str
    auth_provider: AuthProvider
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=user.id,
            email=user.email,
            auth_provider=user.auth_provider,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    """Response for register, login, OAuth login and refresh use cases"""

    user: UserInfo
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


class LogoutResponse(BaseModel):
    """Response for logout use case"""

    revoked_count: int
