from todo_auth.app.services.refresh_token_manager import IssuedRefreshToken, RefreshTokenManager
from todo_auth.app.services.token_issuer import ITokenIssuer
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.domain.entities import User
from .dtos import AuthResponse, UserInfo


def build_auth_response(
    user: User, token_issuer: ITokenIssuer, refresh_token: IssuedRefreshToken
) -> AuthResponse:
    access_token = token_issuer.issue(user)
    return AuthResponse(
        user=UserInfo.from_user(user),
        access_token=access_token.token,
        refresh_token=refresh_token.token,
        access_token_expires_at=access_token.expires_at,
        refresh_token_expires_at=refresh_token.entity.expires_at,
    )


async def issue_session(
    uow: UnitOfWork,
    user: User,
    token_issuer: ITokenIssuer,
    refresh_tokens: RefreshTokenManager,
    user_locks: UserLockRegistry,
) -> AuthResponse:
    """
    Rotate the user's refresh token, sign a fresh access token, then commit.

    Must be called inside an open unit of work; the per-user lock is held
    until the commit so rotations of one user never interleave.
    """
    async with user_locks.hold(user.id):
        refresh_token = await refresh_tokens.generate(user)
        # Signed before the commit so a signing failure rolls the rotation back
        response = build_auth_response(user, token_issuer, refresh_token)
        await uow.commit()

    return response
