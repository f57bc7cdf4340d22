from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_auth.adapter.repositories.refresh_token_repository import RefreshTokenRepository
from todo_auth.adapter.repositories.user_repository import UserRepository
from todo_auth.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.refresh_tokens = RefreshTokenRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()

    async def ping(self) -> None:
        await self.session.execute(text("SELECT 1"))
