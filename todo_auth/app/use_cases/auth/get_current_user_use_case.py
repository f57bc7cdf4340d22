from uuid import UUID

from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.libs.result import Result, Return
from . import errors
from .dtos import UserInfo


class GetCurrentUserUseCase:
    """Load the profile of the user an access token was issued to"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: UUID) -> Result[UserInfo]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(errors.USER_NOT_FOUND)
            return Return.ok(UserInfo.from_user(user))
