"""
Login Use Case

Authenticates a local user and returns a fresh session.
"""

import bcrypt

from todo_auth.app.services.password_policy import BCRYPT_MAX_BYTES
from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.token_issuer import ITokenIssuer
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.domain.base import normalize_email
from todo_auth.libs.result import Result, Return
from . import errors
from .dtos import AuthResponse
from .session_issuer import issue_session

# Checked against when the user does not exist, so both paths cost one bcrypt
_DUMMY_HASH = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(12))


class LoginUseCase:
    """
    Use case for user login and token issuance.

    Business Rules:
    - Constant-time password comparison to prevent timing attacks
    - Unknown email, wrong password and OAuth-only accounts fail identically
    - Issuing the new refresh token revokes the previous one
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

    async def execute(self, email: str, password: str) -> Result[AuthResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password

        Returns:
            Result with AuthResponse containing tokens, or Error(INVALID_CREDENTIALS)
        """
        secret = password.encode("utf-8")

        async with self.uow:
            user = await self.uow.users.get_by_email(normalize_email(email))

            if (
                user is None
                or user.password_hash is None
                or len(secret) > BCRYPT_MAX_BYTES
            ):
                bcrypt.checkpw(secret[:BCRYPT_MAX_BYTES], _DUMMY_HASH)
                return Return.err(errors.INVALID_CREDENTIALS)

            password_valid = bcrypt.checkpw(secret, user.password_hash.encode())
            if not password_valid:
                return Return.err(errors.INVALID_CREDENTIALS)

            response = await issue_session(
                self.uow, user, self.token_issuer, self.refresh_tokens, self.user_locks
            )
            return Return.ok(response)
