"""
Refresh Token Manager

Issues, validates, rotates and revokes refresh tokens. All methods run inside
the caller's unit of work; the caller decides when to commit.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.domain.base import utcnow
from todo_auth.domain.entities import RefreshToken, User

logger = logging.getLogger(__name__)

NEW_TOKEN_ISSUED = "New token issued"


@dataclass(frozen=True)
class IssuedRefreshToken:
    """Plain token for the client plus the stored record"""

    token: str
    entity: RefreshToken


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RefreshTokenManager:
    """
    Refresh token lifecycle: Active -> Revoked (terminal).

    Business Rules:
    - generate() revokes every active token of the user before creating one,
      so a user has at most one active token
    - Tokens carry 256 bits of entropy, only their SHA-256 digest is stored
    - revoke() is idempotent and reports whether it did the transition
    """

    def __init__(
        self,
        uow: UnitOfWork,
        expiration_days: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.expiration_days = expiration_days
        self.clock = clock

    async def generate(self, user: User) -> IssuedRefreshToken:
        now = self.clock()

        # Row lock on the user keeps revoke-then-insert atomic per user
        await self.uow.users.lock_for_update(user.id)
        revoked = await self.uow.refresh_tokens.revoke_active_by_user_id(
            user.id, now, NEW_TOKEN_ISSUED
        )

        token = secrets.token_urlsafe(32)
        entity = RefreshToken(
            user_id=user.id,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + timedelta(days=self.expiration_days),
        )
        entity = await self.uow.refresh_tokens.create(entity)

        logger.info(f"Refresh token issued for user {user.id} ({revoked} revoked)")
        return IssuedRefreshToken(token=token, entity=entity)

    async def get(self, token: str) -> Optional[RefreshToken]:
        return await self.uow.refresh_tokens.get_by_token_hash(hash_token(token))

    async def validate(self, token: str) -> bool:
        refresh_token = await self.get(token)
        if refresh_token is None:
            return False
        return refresh_token.is_active(self.clock())

    async def revoke(self, token: str, reason: Optional[str] = None) -> bool:
        refresh_token = await self.get(token)
        if refresh_token is None or refresh_token.is_revoked:
            return False
        return await self.uow.refresh_tokens.mark_revoked(
            refresh_token.id, self.clock(), reason
        )

    async def revoke_all(self, user_id: UUID, reason: Optional[str] = None) -> int:
        count = await self.uow.refresh_tokens.revoke_active_by_user_id(
            user_id, self.clock(), reason
        )
        if count:
            logger.info(f"Revoked {count} refresh token(s) for user {user_id}: {reason}")
        return count
