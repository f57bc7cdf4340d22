"""
Refresh Token Use Case

Handles access token refresh with refresh token rotation.
"""

import logging

from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.token_issuer import ITokenIssuer
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.libs.result import Result, Return
from . import errors
from .dtos import AuthResponse
from .session_issuer import build_auth_response

logger = logging.getLogger(__name__)

TOKEN_ROTATED = "Token rotated"


class RefreshTokenUseCase:
    """
    Use case for refreshing access tokens.

    Business Rules:
    - Refresh token rotation: old token revoked, new token issued
    - Token must exist, be unrevoked and unexpired
    - Unknown, revoked and expired tokens fail identically
    - Of two concurrent refreshes with the same token only one succeeds;
      the other finds the token already revoked
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_issuer: ITokenIssuer,
        refresh_tokens: RefreshTokenManager,
        user_locks: UserLockRegistry,
    ):
        self.uow = uow
        self.token_issuer = token_issuer
        self.refresh_tokens = refresh_tokens
        self.user_locks = user_locks

    async def execute(self, refresh_token: str) -> Result[AuthResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: The refresh token to verify and rotate

        Returns:
            Result with AuthResponse containing new tokens, or Error(INVALID_TOKEN)
        """
        async with self.uow:
            if not await self.refresh_tokens.validate(refresh_token):
                return Return.err(errors.INVALID_TOKEN)

            stored = await self.refresh_tokens.get(refresh_token)
            user = await self.uow.users.get_by_id(stored.user_id)
            if user is None:
                return Return.err(errors.INVALID_TOKEN)

            async with self.user_locks.hold(user.id):
                await self.uow.users.lock_for_update(user.id)

                # Conditional revoke: loses if a concurrent refresh got here first
                if not await self.refresh_tokens.revoke(refresh_token, TOKEN_ROTATED):
                    logger.warning(f"Refresh token reuse detected for user {user.id}")
                    return Return.err(errors.INVALID_TOKEN)

                new_refresh_token = await self.refresh_tokens.generate(user)
                response = build_auth_response(user, self.token_issuer, new_refresh_token)
                await self.uow.commit()

            return Return.ok(response)
