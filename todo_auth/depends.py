import logging
from functools import lru_cache
from typing import Dict, Optional
from uuid import UUID

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from todo_auth.adapter.services.google_identity_verifier import GoogleIdentityVerifier
from todo_auth.adapter.services.in_memory_unit_of_work import (
    InMemoryDatabase,
    InMemoryUnitOfWork,
)
from todo_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from todo_auth.api.error import ClientError
from todo_auth.api.utils.jwt import JwtTokenIssuer
from todo_auth.app.services.oauth_identity_verifier import IOAuthIdentityVerifier
from todo_auth.app.services.rate_limiter import RateLimiter
from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.domain.entities import AuthProvider
from todo_auth.libs.result import Error, ErrorKind

logger = logging.getLogger(__name__)

# No database configured: fall back to a process-local store
USE_IN_MEMORY_DB = ApplicationConfig.USE_IN_MEMORY_DB or not ApplicationConfig.DB_URI

if USE_IN_MEMORY_DB:
    engine = None
    AsyncSessionLocal = None
    memory_database = InMemoryDatabase()
else:
    engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)
    AsyncSessionLocal = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    memory_database = None

user_locks = UserLockRegistry()

security = HTTPBearer(auto_error=False)

UNAUTHORIZED = Error("UNAUTHORIZED", "Invalid or expired token", ErrorKind.invalid_token)
TOO_MANY_REQUESTS = Error(
    "TOO_MANY_REQUESTS", "Too many requests, try again later", ErrorKind.rate_limited
)


async def init_db() -> None:
    if engine is None:
        logger.warning("No database configured, using in-memory store")
        return
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_unit_of_work():
    if AsyncSessionLocal is None:
        yield InMemoryUnitOfWork(memory_database)
        return
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache(maxsize=1)
def get_token_issuer() -> JwtTokenIssuer:
    return JwtTokenIssuer.from_config(ApplicationConfig)


def get_user_locks() -> UserLockRegistry:
    return user_locks


def get_refresh_token_manager(
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> RefreshTokenManager:
    return RefreshTokenManager(uow, ApplicationConfig.REFRESH_TOKEN_EXPIRATION_DAYS)


@lru_cache(maxsize=1)
def _get_google_verifier() -> GoogleIdentityVerifier:
    return GoogleIdentityVerifier(client_id=ApplicationConfig.GOOGLE_CLIENT_ID)


def get_oauth_verifiers() -> Dict[AuthProvider, IOAuthIdentityVerifier]:
    verifiers = {}
    if ApplicationConfig.GOOGLE_CLIENT_ID:
        verifiers[AuthProvider.google] = _get_google_verifier()
    return verifiers


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_issuer: JwtTokenIssuer = Depends(get_token_issuer),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing sub, email and jti

    Raises:
        ClientError: 401 if token is missing, invalid or expired
    """
    if credentials is None:
        raise ClientError(UNAUTHORIZED, status_code=status.HTTP_401_UNAUTHORIZED)

    payload = token_issuer.verify(credentials.credentials)
    if payload is None:
        raise ClientError(UNAUTHORIZED, status_code=status.HTTP_401_UNAUTHORIZED)

    return payload


async def get_current_user_id(current_user: dict = Depends(get_current_user)) -> UUID:
    try:
        return UUID(current_user["sub"])
    except ValueError:
        raise ClientError(UNAUTHORIZED, status_code=status.HTTP_401_UNAUTHORIZED)


def get_rate_limiter(request: Request) -> Optional[RateLimiter]:
    return getattr(request.app.state, "rate_limiter", None)


async def enforce_auth_rate_limit(
    request: Request, limiter: Optional[RateLimiter] = Depends(get_rate_limiter)
) -> None:
    """Throttle the auth endpoints per client IP"""
    if limiter is None:
        return
    ip = request.client.host if request.client else "unknown"
    key = f"auth:{ip}"
    if not limiter.allow(key):
        logger.warning(f"Rate limit exceeded for {ip} on {request.url.path}")
        raise ClientError(
            TOO_MANY_REQUESTS,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(limiter.retry_after(key))},
        )
