"""
RefreshToken Entity

Stores long-lived refresh tokens used to obtain new access tokens.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from todo_auth.domain.base import utcnow


class RefreshToken(SQLModel, table=True):
    """
    RefreshToken entity - one issued refresh token.

    Business Rules:
    - Only the SHA-256 digest of the token is stored
    - Active -> Revoked is the only transition, revocation is terminal
    - At most one active, unexpired token per user (rotation on issue)
    - Rows are kept for audit, never deleted
    """

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    token_hash: str = Field(unique=True, index=True, max_length=64)  # SHA-256 hex

    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revocation_reason: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_refresh_token_user_revoked", "user_id", "revoked_at"),
        Index("idx_refresh_token_expires_at", "expires_at"),
    )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_active(self, now: datetime) -> bool:
        return not self.is_revoked and not self.is_expired(now)
