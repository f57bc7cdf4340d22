import asyncio
import json
from datetime import timedelta
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

from todo_auth.client import AuthApi, AuthService, AuthSession, MemoryStorage, SessionStore
from todo_auth.client.api import error_from_response
from todo_auth.domain.base import utcnow
from todo_auth.libs.result import ErrorKind

USER_ID = str(uuid4())


def auth_payload(access="access-new", refresh="refresh-new", access_minutes=15):
    now = utcnow()
    return {
        "user": {
            "id": USER_ID,
            "email": "user@example.com",
            "auth_provider": "local",
            "created_at": now.isoformat(),
        },
        "access_token": access,
        "refresh_token": refresh,
        "access_token_expires_at": (now + timedelta(minutes=access_minutes)).isoformat(),
        "refresh_token_expires_at": (now + timedelta(days=30)).isoformat(),
    }


def stored_session(access_in=timedelta(minutes=15), refresh_in=timedelta(days=30)):
    payload = auth_payload(access="access-old", refresh="refresh-old")
    now = utcnow()
    payload["access_token_expires_at"] = (now + access_in).isoformat()
    payload["refresh_token_expires_at"] = (now + refresh_in).isoformat()
    return AuthSession.model_validate(payload)


class FakeServer:
    """Records requests and answers from a per-path table"""

    def __init__(self):
        self.requests = []
        self.responses = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.responses.get(request.url.path)
        if answer is None:
            return httpx.Response(404, json={"code": "NOT_FOUND", "message": "Not Found"})
        if isinstance(answer, Exception):
            raise answer
        return answer

    def paths(self):
        return [r.url.path for r in self.requests]


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def store():
    return SessionStore(MemoryStorage())


@pytest_asyncio.fixture
async def service(server, store):
    transport = httpx.MockTransport(server.handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield AuthService(AuthApi(client), store)


@pytest.mark.asyncio
async def test_login_persists_session(server, store, service):
    server.responses["/auth/login"] = httpx.Response(200, json=auth_payload())

    result = await service.login("user@example.com", "Correct-Horse-42")

    assert result.is_ok()
    assert (await store.load()) == result.value
    assert json.loads(server.requests[0].content) == {
        "email": "user@example.com",
        "password": "Correct-Horse-42",
    }


@pytest.mark.asyncio
async def test_failed_login_stores_nothing(server, store, service):
    server.responses["/auth/login"] = httpx.Response(
        401, json={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"}
    )

    result = await service.login("user@example.com", "wrong")

    assert result.is_err()
    assert result.error.kind == ErrorKind.invalid_credentials
    assert result.error.message == "Invalid email or password"
    assert await store.load() is None


@pytest.mark.asyncio
async def test_refresh_persists_rotated_session(server, store, service):
    await store.save(stored_session())
    server.responses["/auth/refresh"] = httpx.Response(200, json=auth_payload())

    result = await service.refresh()

    assert result.is_ok()
    assert (await store.load()).refresh_token == "refresh-new"
    assert json.loads(server.requests[0].content) == {"refresh_token": "refresh-old"}


@pytest.mark.asyncio
async def test_rejected_refresh_clears_session(server, store, service):
    await store.save(stored_session())
    server.responses["/auth/refresh"] = httpx.Response(
        401, json={"code": "INVALID_TOKEN", "message": "Session expired, please sign in again"}
    )

    result = await service.refresh()

    assert result.error.kind == ErrorKind.invalid_token
    assert await store.load() is None


@pytest.mark.asyncio
async def test_unreachable_server_keeps_session(server, store, service):
    await store.save(stored_session())
    server.responses["/auth/refresh"] = httpx.ConnectError("connection refused")

    result = await service.refresh()

    assert result.error.code == "BACKEND_UNREACHABLE"
    assert result.error.kind == ErrorKind.unexpected
    assert (await store.load()).refresh_token == "refresh-old"


@pytest.mark.asyncio
async def test_refresh_without_session(server, service):
    result = await service.refresh()

    assert result.error.code == "NOT_SIGNED_IN"
    assert server.requests == []


@pytest.mark.asyncio
async def test_logout_revokes_and_clears(server, store, service):
    await store.save(stored_session())
    server.responses["/auth/logout"] = httpx.Response(204)

    await service.logout()

    assert await store.load() is None
    assert server.requests[0].headers["Authorization"] == "Bearer access-old"


@pytest.mark.asyncio
async def test_logout_clears_even_when_server_unreachable(server, store, service):
    await store.save(stored_session())
    server.responses["/auth/logout"] = httpx.ConnectError("connection refused")

    await service.logout()

    assert await store.load() is None


@pytest.mark.asyncio
async def test_logout_clears_when_server_errors(server, store, service):
    await store.save(stored_session())
    server.responses["/auth/logout"] = httpx.Response(500, text="oops")

    await service.logout()

    assert await store.load() is None


@pytest.mark.asyncio
async def test_initialize_keeps_fresh_session(server, store, service):
    session = stored_session()
    await store.save(session)

    assert await service.initialize() == session
    assert server.requests == []


@pytest.mark.asyncio
async def test_initialize_refreshes_expiring_access_token(server, store, service):
    await store.save(stored_session(access_in=timedelta(seconds=5)))
    server.responses["/auth/refresh"] = httpx.Response(200, json=auth_payload())

    restored = await service.initialize()

    assert restored.access_token == "access-new"
    assert server.paths() == ["/auth/refresh"]


@pytest.mark.asyncio
async def test_initialize_drops_fully_expired_session(server, store, service):
    await store.save(
        stored_session(access_in=timedelta(minutes=-5), refresh_in=timedelta(seconds=-1))
    )

    assert await service.initialize() is None
    assert await store.load() is None
    assert server.requests == []


@pytest.mark.asyncio
async def test_initialize_drops_session_when_refresh_fails(server, store, service):
    await store.save(stored_session(access_in=timedelta(minutes=-5)))
    server.responses["/auth/refresh"] = httpx.ConnectError("connection refused")

    assert await service.initialize() is None
    assert await store.load() is None


@pytest.mark.asyncio
async def test_get_access_token_without_refresh(server, store, service):
    await store.save(stored_session())

    assert await service.get_access_token() == "access-old"
    assert server.requests == []


@pytest.mark.asyncio
async def test_concurrent_token_requests_refresh_once(server, store, service):
    await store.save(stored_session(access_in=timedelta(seconds=1)))
    server.responses["/auth/refresh"] = httpx.Response(200, json=auth_payload())

    tokens = await asyncio.gather(*[service.get_access_token() for _ in range(5)])

    assert tokens == ["access-new"] * 5
    assert server.paths() == ["/auth/refresh"]


def test_error_from_response_keeps_field_errors():
    response = httpx.Response(
        400,
        json={
            "code": "WEAK_PASSWORD",
            "message": "Password does not meet the requirements",
            "errors": {"password": ["Password must contain a digit"]},
        },
    )

    error = error_from_response(response)

    assert error.kind == ErrorKind.validation
    assert error.details == {"password": ["Password must contain a digit"]}


def test_error_from_response_without_json_body():
    error = error_from_response(httpx.Response(502, text="Bad Gateway"))

    assert error.code == "HTTP_502"
    assert error.kind == ErrorKind.unexpected


@pytest.mark.asyncio
async def test_login_during_failing_refresh_keeps_new_session(store):
    await store.save(stored_session(access_in=timedelta(seconds=5)))
    login_answered = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/login":
            login_answered.set()
            return httpx.Response(200, json=auth_payload())
        # The login above revoked the stored refresh token
        await login_answered.wait()
        return httpx.Response(
            401, json={"code": "INVALID_TOKEN", "message": "Session expired, please sign in again"}
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        service = AuthService(AuthApi(client), store)

        token, login = await asyncio.gather(
            service.get_access_token(),
            service.login("user@example.com", "Correct-Horse-42"),
        )

    assert token is None
    assert login.is_ok()
    assert (await store.load()).refresh_token == "refresh-new"
