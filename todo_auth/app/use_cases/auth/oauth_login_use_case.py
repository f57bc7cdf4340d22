"""
OAuth Login Use Case

Signs a user in with an identity token from an external provider, creating
the account on first login.
"""

import logging
from typing import Mapping

from todo_auth.app.repositories.errors import DuplicateRecordError
from todo_auth.app.services.oauth_identity_verifier import IOAuthIdentityVerifier
from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.token_issuer import ITokenIssuer
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.domain.base import normalize_email
from todo_auth.domain.entities import AuthProvider, User
from todo_auth.libs.result import Result, Return
from . import errors
from .dtos import AuthResponse
from .session_issuer import issue_session

logger = logging.getLogger(__name__)


class OAuthLoginUseCase:
    """
    Use case for OAuth login.

    Business Rules:
    - The local provider cannot be used here
    - Only providers with a configured verifier are accepted
    - Users are matched by provider subject, never by email alone
    - A new provider subject whose email is already used by another account of
      the same provider is a conflict
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_issuer: ITokenIssuer,
        refresh_tokens: RefreshTokenManager,
        user_locks: UserLockRegistry,
        verifiers: Mapping[AuthProvider, IOAuthIdentityVerifier],
    ):
        self.uow = uow
        self.token_issuer = token_issuer
        self.refresh_tokens = refresh_tokens
        self.user_locks = user_locks
        self.verifiers = verifiers

    async def execute(self, provider: AuthProvider, id_token: str) -> Result[AuthResponse]:
        verifier = self.verifiers.get(provider)
        if provider == AuthProvider.local or verifier is None:
            return Return.err(errors.unsupported_provider(provider.value))

        verified = await verifier.verify(id_token)
        if verified.is_err():
            return verified
        identity = verified.value
        email = normalize_email(identity.email)

        async with self.uow:
            user = await self.uow.users.get_by_provider_user_id(
                provider, identity.provider_user_id
            )

            if user is None:
                if await self.uow.users.get_by_email(email, provider):
                    return Return.err(errors.OAUTH_ACCOUNT_CONFLICT)

                try:
                    user = await self.uow.users.create(
                        User.external(provider, identity.provider_user_id, email)
                    )
                except DuplicateRecordError:
                    return Return.err(errors.OAUTH_ACCOUNT_CONFLICT)
                logger.info(f"Created {provider.value} account for user {user.id}")

            response = await issue_session(
                self.uow, user, self.token_issuer, self.refresh_tokens, self.user_locks
            )
            return Return.ok(response)
