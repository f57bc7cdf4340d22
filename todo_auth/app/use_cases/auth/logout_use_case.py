from uuid import UUID

from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.libs.result import Result, Return
from .dtos import LogoutResponse

USER_LOGGED_OUT = "User logged out"


class LogoutUseCase:
    """
    Use case for logging out.

    Revokes every active refresh token of the user so that no session of
    theirs can be refreshed any more. Access tokens already handed out stay
    valid until they expire.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        refresh_tokens: RefreshTokenManager,
        user_locks: UserLockRegistry,
    ):
        self.uow = uow
        self.refresh_tokens = refresh_tokens
        self.user_locks = user_locks

    async def execute(self, user_id: UUID) -> Result[LogoutResponse]:
        async with self.uow:
            async with self.user_locks.hold(user_id):
                revoked_count = await self.refresh_tokens.revoke_all(
                    user_id, USER_LOGGED_OUT
                )
                await self.uow.commit()

            return Return.ok(LogoutResponse(revoked_count=revoked_count))
