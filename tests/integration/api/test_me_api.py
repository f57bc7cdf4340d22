import pytest
from httpx import AsyncClient
from sqlmodel import select

from todo_auth.domain.entities import RefreshToken, User


@pytest.mark.asyncio
async def test_get_me(client: AsyncClient, registered):
    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {registered['access_token']}"}
    )

    assert response.status_code == 200
    assert response.json() == registered["user"]


@pytest.mark.asyncio
async def test_get_me_without_token(client: AsyncClient):
    response = await client.get("/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_me_for_deleted_user(client: AsyncClient, registered, db_session):
    tokens = await db_session.exec(select(RefreshToken))
    for token in tokens.all():
        await db_session.delete(token)
    user = (await db_session.exec(select(User))).one()
    await db_session.delete(user)
    await db_session.commit()

    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {registered['access_token']}"}
    )

    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"
