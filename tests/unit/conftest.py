import pytest
from unittest.mock import AsyncMock, MagicMock

from todo_auth.adapter.services.in_memory_unit_of_work import (
    InMemoryDatabase,
    InMemoryUnitOfWork,
)
from todo_auth.api.utils.jwt import JwtTokenIssuer
from todo_auth.app.services.user_locks import UserLockRegistry

TEST_SECRET = "unit-test-secret-0123456789abcdef"


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_id = AsyncMock()
    uow.users.get_by_email = AsyncMock()
    uow.users.get_by_provider_user_id = AsyncMock()
    uow.users.create = AsyncMock()
    uow.users.lock_for_update = AsyncMock()

    uow.refresh_tokens = MagicMock()
    uow.refresh_tokens.get_by_token_hash = AsyncMock()
    uow.refresh_tokens.create = AsyncMock()
    uow.refresh_tokens.mark_revoked = AsyncMock()
    uow.refresh_tokens.revoke_active_by_user_id = AsyncMock(return_value=0)
    return uow


@pytest.fixture
def memory_db():
    return InMemoryDatabase()


@pytest.fixture
def make_uow(memory_db):
    """Each call is a fresh unit of work over the shared in-memory database"""

    def factory():
        return InMemoryUnitOfWork(memory_db)

    return factory


@pytest.fixture
def token_issuer():
    return JwtTokenIssuer(TEST_SECRET, "todo-api", "todo-frontend", 15)


@pytest.fixture
def user_locks():
    return UserLockRegistry()


@pytest.fixture
def register(make_uow, token_issuer, user_locks):
    """Register a local user through the real use case, return the AuthResponse"""
    from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
    from todo_auth.app.use_cases.auth import RegisterCommand, RegisterUseCase

    async def _register(email="user@example.com", password="Correct-Horse-42"):
        uow = make_uow()
        use_case = RegisterUseCase(uow, token_issuer, RefreshTokenManager(uow), user_locks)
        result = await use_case.execute(RegisterCommand(email=email, password=password))
        assert result.is_ok(), result
        return result.value

    return _register
