"""
Use Cases

Use cases are organized into domain folders:
- auth/: Authentication and session flows
"""

from .auth import (
    RegisterUseCase,
    LoginUseCase,
    RefreshTokenUseCase,
    LogoutUseCase,
    OAuthLoginUseCase,
    GetCurrentUserUseCase,
)

__all__ = [
    # Auth
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "OAuthLoginUseCase",
    "GetCurrentUserUseCase",
]
