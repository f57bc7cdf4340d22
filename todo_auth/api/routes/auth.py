from typing import Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field

from todo_auth.api.error import raise_for_error
from todo_auth.api.utils.jwt import JwtTokenIssuer
from todo_auth.app.services.oauth_identity_verifier import IOAuthIdentityVerifier
from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.app.use_cases.auth import (
    AuthResponse,
    GetCurrentUserUseCase,
    LoginUseCase,
    LogoutUseCase,
    OAuthLoginUseCase,
    RefreshTokenUseCase,
    RegisterCommand,
    RegisterUseCase,
    UserInfo,
)
from todo_auth.depends import (
    enforce_auth_rate_limit,
    get_current_user_id,
    get_oauth_verifiers,
    get_refresh_token_manager,
    get_token_issuer,
    get_unit_of_work,
    get_user_locks,
)
from todo_auth.domain.entities import AuthProvider

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    dependencies=[Depends(enforce_auth_rate_limit)],
)


class RegisterRequest(BaseModel):
    """
    Register HTTP request payload

    Shape checks only; the password policy is enforced by the use case so
    every violated rule is reported at once.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


@router.post(
    "/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse
)
async def register(
    request: RegisterRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_issuer: JwtTokenIssuer = Depends(get_token_issuer),
    refresh_tokens: RefreshTokenManager = Depends(get_refresh_token_manager),
    user_locks: UserLockRegistry = Depends(get_user_locks),
):
    """
    Create a local account and open a session for it.

    Raises:
        - 400 Bad Request: Invalid input or weak password
        - 409 Conflict: Email already registered
    """
    command = RegisterCommand(email=request.email, password=request.password)

    use_case = RegisterUseCase(uow, token_issuer, refresh_tokens, user_locks)
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class LoginRequest(BaseModel):
    """Login HTTP request payload"""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=AuthResponse)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_issuer: JwtTokenIssuer = Depends(get_token_issuer),
    refresh_tokens: RefreshTokenManager = Depends(get_refresh_token_manager),
    user_locks: UserLockRegistry = Depends(get_user_locks),
):
    """
    Authenticate with email and password.

    Raises:
        - 401 Unauthorized: Invalid credentials
    """
    use_case = LoginUseCase(uow, token_issuer, refresh_tokens, user_locks)
    result = await use_case.execute(request.email, request.password)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RefreshTokenRequest(BaseModel):
    """Refresh token HTTP request payload"""

    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=AuthResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_issuer: JwtTokenIssuer = Depends(get_token_issuer),
    refresh_tokens: RefreshTokenManager = Depends(get_refresh_token_manager),
    user_locks: UserLockRegistry = Depends(get_user_locks),
):
    """
    Rotate a refresh token.

    The presented token is revoked and a new access/refresh pair returned.

    Raises:
        - 401 Unauthorized: Token unknown, revoked or expired
    """
    use_case = RefreshTokenUseCase(uow, token_issuer, refresh_tokens, user_locks)
    result = await use_case.execute(request.refresh_token)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    refresh_tokens: RefreshTokenManager = Depends(get_refresh_token_manager),
    user_locks: UserLockRegistry = Depends(get_user_locks),
):
    """Revoke every active refresh token of the caller"""
    use_case = LogoutUseCase(uow, refresh_tokens, user_locks)
    result = await use_case.execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


class OAuthLoginRequest(BaseModel):
    """OAuth login HTTP request payload"""

    provider: AuthProvider = Field(..., description="Identity provider")
    id_token: str = Field(..., min_length=1, description="Provider identity token")


@router.post("/oauth", status_code=status.HTTP_200_OK, response_model=AuthResponse)
async def oauth_login(
    request: OAuthLoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_issuer: JwtTokenIssuer = Depends(get_token_issuer),
    refresh_tokens: RefreshTokenManager = Depends(get_refresh_token_manager),
    user_locks: UserLockRegistry = Depends(get_user_locks),
    verifiers: Dict[AuthProvider, IOAuthIdentityVerifier] = Depends(get_oauth_verifiers),
):
    """
    Sign in with an identity token from an external provider.

    Raises:
        - 400 Bad Request: Provider not supported
        - 401 Unauthorized: Identity token rejected
        - 409 Conflict: Email already linked to another account of the provider
    """
    use_case = OAuthLoginUseCase(uow, token_issuer, refresh_tokens, user_locks, verifiers)
    result = await use_case.execute(request.provider, request.id_token)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=UserInfo)
async def get_me(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = GetCurrentUserUseCase(uow)
    result = await use_case.execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
