import asyncio

import pytest

from todo_auth.app.services.refresh_token_manager import (
    NEW_TOKEN_ISSUED,
    RefreshTokenManager,
    hash_token,
)
from todo_auth.app.use_cases.auth import LoginUseCase
from todo_auth.domain.base import utcnow
from todo_auth.domain.entities import AuthProvider, User
from todo_auth.libs.result import ErrorKind


def build_use_case(uow, token_issuer, user_locks):
    return LoginUseCase(uow, token_issuer, RefreshTokenManager(uow), user_locks)


@pytest.mark.asyncio
async def test_successful_login(register, make_uow, token_issuer, user_locks):
    registered = await register(email="user@example.com", password="Correct-Horse-42")
    use_case = build_use_case(make_uow(), token_issuer, user_locks)

    result = await use_case.execute("User@Example.com", "Correct-Horse-42")

    assert result.is_ok()
    data = result.value
    assert data.user.id == registered.user.id
    assert data.refresh_token != registered.refresh_token
    assert token_issuer.verify(data.access_token)["sub"] == str(registered.user.id)


@pytest.mark.asyncio
async def test_login_revokes_previous_refresh_token(register, make_uow, memory_db, token_issuer, user_locks):
    registered = await register()
    use_case = build_use_case(make_uow(), token_issuer, user_locks)

    result = await use_case.execute("user@example.com", "Correct-Horse-42")

    tokens = {t.token_hash: t for t in memory_db.refresh_tokens.values()}
    previous = tokens[hash_token(registered.refresh_token)]
    current = tokens[hash_token(result.value.refresh_token)]
    assert previous.is_revoked
    assert previous.revocation_reason == NEW_TOKEN_ISSUED
    assert current.is_active(utcnow())

    # At most one active token per user
    active = [t for t in tokens.values() if t.is_active(utcnow())]
    assert len(active) == 1


@pytest.mark.asyncio
async def test_login_wrong_password(register, make_uow, token_issuer, user_locks):
    await register()
    use_case = build_use_case(make_uow(), token_issuer, user_locks)

    result = await use_case.execute("user@example.com", "Wrong-Horse-42")

    assert result.is_err()
    assert result.error.code == "INVALID_CREDENTIALS"
    assert result.error.kind == ErrorKind.invalid_credentials


@pytest.mark.asyncio
async def test_login_unknown_email_matches_wrong_password(register, make_uow, token_issuer, user_locks):
    await register()

    unknown = await build_use_case(make_uow(), token_issuer, user_locks).execute(
        "nobody@example.com", "Correct-Horse-42"
    )
    wrong = await build_use_case(make_uow(), token_issuer, user_locks).execute(
        "user@example.com", "Wrong-Horse-42"
    )

    assert unknown.error == wrong.error


@pytest.mark.asyncio
async def test_login_rejects_oauth_only_account(mock_uow, token_issuer, user_locks):
    oauth_user = User.external(AuthProvider.google, "google-sub-1", "user@example.com")
    mock_uow.users.get_by_email.return_value = oauth_user
    use_case = build_use_case(mock_uow, token_issuer, user_locks)

    result = await use_case.execute("user@example.com", "anything")

    assert result.is_err()
    assert result.error.code == "INVALID_CREDENTIALS"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_login_looks_up_normalized_email(mock_uow, token_issuer, user_locks):
    mock_uow.users.get_by_email.return_value = None
    use_case = build_use_case(mock_uow, token_issuer, user_locks)

    result = await use_case.execute("  Someone@Example.COM ", "Correct-Horse-42")

    assert result.is_err()
    mock_uow.users.get_by_email.assert_called_once_with("someone@example.com")
    mock_uow.refresh_tokens.create.assert_not_called()


@pytest.mark.asyncio
async def test_login_with_password_over_bcrypt_limit(register, make_uow, token_issuer, user_locks):
    await register()
    use_case = build_use_case(make_uow(), token_issuer, user_locks)

    result = await use_case.execute("user@example.com", "Aa1!" + "x" * 76)

    assert result.is_err()
    assert result.error.code == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_concurrent_logins_leave_one_active_token(
    register, make_uow, memory_db, token_issuer, user_locks
):
    registered = await register()

    results = await asyncio.gather(
        *[
            build_use_case(make_uow(), token_issuer, user_locks).execute(
                "user@example.com", "Correct-Horse-42"
            )
            for _ in range(5)
        ]
    )

    assert all(r.is_ok() for r in results)
    now = utcnow()
    active = [
        t for t in memory_db.refresh_tokens.values()
        if t.user_id == registered.user.id and t.is_active(now)
    ]
    assert len(active) == 1
    assert active[0].token_hash in {hash_token(r.value.refresh_token) for r in results}
    assert len(user_locks) == 0


@pytest.mark.asyncio
async def test_signing_failure_does_not_rotate(register, make_uow, memory_db, user_locks):
    registered = await register()

    class BrokenIssuer:
        def issue(self, user):
            raise RuntimeError("signing key unavailable")

    with pytest.raises(RuntimeError):
        await build_use_case(make_uow(), BrokenIssuer(), user_locks).execute(
            "user@example.com", "Correct-Horse-42"
        )

    now = utcnow()
    [active] = [t for t in memory_db.refresh_tokens.values() if t.is_active(now)]
    assert active.token_hash == hash_token(registered.refresh_token)
