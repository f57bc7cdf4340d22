"""
User Entity

Holds a person's identity and how they authenticate.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Column, DateTime, Field, SQLModel

from todo_auth.domain.base import utcnow

from .enums import AuthProvider


class User(SQLModel, table=True):
    """
    User entity - credential store record.

    Business Rules:
    - Local users carry a bcrypt password hash and no provider subject
    - OAuth users carry a provider subject and no password hash
    - Email is unique per provider, provider subject is unique per provider
    - Never hard-deleted
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(index=True, max_length=255)
    password_hash: Optional[str] = Field(default=None, max_length=60)  # Bcrypt output

    auth_provider: AuthProvider = Field(default=AuthProvider.local)
    provider_user_id: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        UniqueConstraint("auth_provider", "email", name="uq_user_provider_email"),
        UniqueConstraint(
            "auth_provider", "provider_user_id", name="uq_user_provider_subject"
        ),
        CheckConstraint(
            "(auth_provider = 'local' AND password_hash IS NOT NULL"
            " AND provider_user_id IS NULL)"
            " OR (auth_provider <> 'local' AND password_hash IS NULL"
            " AND provider_user_id IS NOT NULL)",
            name="ck_user_credentials",
        ),
    )

    @classmethod
    def local(cls, email: str, password_hash: str) -> "User":
        return cls(
            email=email,
            password_hash=password_hash,
            auth_provider=AuthProvider.local,
            provider_user_id=None,
        )

    @classmethod
    def external(cls, provider: AuthProvider, provider_user_id: str, email: str) -> "User":
        if provider == AuthProvider.local:
            raise ValueError("External users need a non-local provider")
        return cls(
            email=email,
            password_hash=None,
            auth_provider=provider,
            provider_user_id=provider_user_id,
        )

    def has_consistent_credentials(self) -> bool:
        if self.auth_provider == AuthProvider.local:
            return self.password_hash is not None and self.provider_user_id is None
        return self.password_hash is None and self.provider_user_id is not None
