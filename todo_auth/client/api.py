import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from todo_auth.app.use_cases.auth.dtos import AuthResponse, UserInfo
from todo_auth.domain.entities import AuthProvider
from todo_auth.libs.result import Error, ErrorKind, Result, Return

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

BACKEND_UNREACHABLE = Error(
    "BACKEND_UNREACHABLE", "Unable to reach the server", ErrorKind.unexpected
)
INVALID_RESPONSE = Error(
    "INVALID_RESPONSE", "Unexpected response from the server", ErrorKind.unexpected
)

KIND_BY_STATUS = {
    400: ErrorKind.validation,
    404: ErrorKind.not_found,
    409: ErrorKind.conflict,
    429: ErrorKind.rate_limited,
}


def error_from_response(response: httpx.Response) -> Error:
    """Rebuild the server's error from its status and JSON envelope"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    code = str(body.get("code") or f"HTTP_{response.status_code}")
    message = str(body.get("message") or response.reason_phrase or "Request failed")

    if response.status_code == 401:
        kind = (
            ErrorKind.invalid_credentials
            if code == "INVALID_CREDENTIALS"
            else ErrorKind.invalid_token
        )
    else:
        kind = KIND_BY_STATUS.get(response.status_code, ErrorKind.unexpected)

    details = body.get("errors") if isinstance(body.get("errors"), dict) else None
    return Error(code, message, kind, details=details)


class AuthApi:
    """
    Thin client over the auth HTTP endpoints.

    Every call returns a Result; transport failures become BACKEND_UNREACHABLE
    instead of raising.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def register(self, email: str, password: str) -> Result[AuthResponse]:
        return await self._call(
            "POST", "/auth/register", AuthResponse, json={"email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> Result[AuthResponse]:
        return await self._call(
            "POST", "/auth/login", AuthResponse, json={"email": email, "password": password}
        )

    async def refresh(self, refresh_token: str) -> Result[AuthResponse]:
        return await self._call(
            "POST", "/auth/refresh", AuthResponse, json={"refresh_token": refresh_token}
        )

    async def login_with_oauth(
        self, provider: AuthProvider, id_token: str
    ) -> Result[AuthResponse]:
        return await self._call(
            "POST",
            "/auth/oauth",
            AuthResponse,
            json={"provider": AuthProvider(provider).value, "id_token": id_token},
        )

    async def logout(self, access_token: str) -> Result[None]:
        return await self._call(
            "POST", "/auth/logout", None, headers=_bearer(access_token)
        )

    async def me(self, access_token: str) -> Result[UserInfo]:
        return await self._call("GET", "/auth/me", UserInfo, headers=_bearer(access_token))

    async def _call(
        self, method: str, url: str, model: Optional[Type[M]], **kwargs: Any
    ) -> Result[Any]:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            logger.warning(f"{method} {url} failed: {exc!r}")
            return Return.err(BACKEND_UNREACHABLE)

        if not response.is_success:
            return Return.err(error_from_response(response))

        if model is None:
            return Return.ok()

        try:
            return Return.ok(model.model_validate_json(response.content))
        except ValidationError as exc:
            logger.error(f"{method} {url} returned an unreadable body: {exc}")
            return Return.err(INVALID_RESPONSE)


def _bearer(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}
