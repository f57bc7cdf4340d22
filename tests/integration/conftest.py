import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from todo_auth.app.services.rate_limiter import RateLimiter
from todo_auth.depends import get_unit_of_work
from todo_auth.domain.entities import RefreshToken, User  # noqa: F401 - registers tables

STRONG_PASSWORD = "Correct-Horse-42"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test_todo_auth.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def app(db_session):
    from todo_auth.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)
    # Tests drive many auth calls from one address
    app.state.rate_limiter = RateLimiter(1000, 60)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    return app


@pytest_asyncio.fixture
async def client(app):
    from httpx import ASGITransport

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def registered(client):
    """A registered local user: the register response body"""
    response = await client.post(
        "/auth/register", json={"email": "user@example.com", "password": STRONG_PASSWORD}
    )
    assert response.status_code == 201
    return response.json()
