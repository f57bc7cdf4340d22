from datetime import timedelta

import pytest

from todo_auth.app.repositories.errors import DuplicateRecordError
from todo_auth.domain.base import utcnow
from todo_auth.domain.entities import AuthProvider, RefreshToken, User


def new_token(user, token_hash="a" * 64):
    now = utcnow()
    return RefreshToken(
        user_id=user.id,
        token_hash=token_hash,
        created_at=now,
        expires_at=now + timedelta(days=30),
    )


@pytest.mark.asyncio
async def test_uncommitted_writes_are_discarded(make_uow, memory_db):
    async with make_uow() as uow:
        await uow.users.create(User.local("user@example.com", "hash"))
        assert await uow.users.get_by_email("user@example.com") is not None

    assert memory_db.users == {}


@pytest.mark.asyncio
async def test_committed_writes_are_visible_to_other_units(make_uow):
    async with make_uow() as uow:
        user = await uow.users.create(User.local("user@example.com", "hash"))
        await uow.commit()

    async with make_uow() as uow:
        found = await uow.users.get_by_id(user.id)

    assert found.email == "user@example.com"


@pytest.mark.asyncio
async def test_pending_writes_are_private(make_uow):
    writer = make_uow()
    reader = make_uow()
    async with writer, reader:
        await writer.users.create(User.local("user@example.com", "hash"))

        assert await reader.users.get_by_email("user@example.com") is None


@pytest.mark.asyncio
async def test_returned_entities_are_copies(make_uow, memory_db):
    async with make_uow() as uow:
        user = await uow.users.create(User.local("user@example.com", "hash"))
        await uow.commit()

    user.email = "changed@example.com"

    assert memory_db.users[user.id].email == "user@example.com"


@pytest.mark.asyncio
async def test_duplicate_email_per_provider(make_uow):
    async with make_uow() as uow:
        await uow.users.create(User.local("user@example.com", "hash"))
        await uow.users.create(
            User.external(AuthProvider.google, "sub-1", "user@example.com")
        )

        with pytest.raises(DuplicateRecordError):
            await uow.users.create(User.local("user@example.com", "other"))


@pytest.mark.asyncio
async def test_mark_revoked_is_conditional(make_uow):
    async with make_uow() as uow:
        user = await uow.users.create(User.local("user@example.com", "hash"))
        token = await uow.refresh_tokens.create(new_token(user))
        now = utcnow()

        assert await uow.refresh_tokens.mark_revoked(token.id, now, "first") is True
        assert await uow.refresh_tokens.mark_revoked(token.id, now, "second") is False

        stored = await uow.refresh_tokens.get_by_token_hash(token.token_hash)
        assert stored.revocation_reason == "first"


@pytest.mark.asyncio
async def test_revoke_active_skips_expired(make_uow):
    async with make_uow() as uow:
        user = await uow.users.create(User.local("user@example.com", "hash"))
        active = new_token(user, "a" * 64)
        expired = new_token(user, "b" * 64)
        expired.expires_at = utcnow() - timedelta(seconds=1)
        await uow.refresh_tokens.create(active)
        await uow.refresh_tokens.create(expired)

        count = await uow.refresh_tokens.revoke_active_by_user_id(user.id, utcnow(), "logout")

        assert count == 1
        assert (await uow.refresh_tokens.get_by_token_hash("b" * 64)).revoked_at is None
