"""
Authentication errors

Every failure a use case can return, tagged with its kind.
"""

from typing import List

from todo_auth.libs.result import Error, ErrorKind

INVALID_CREDENTIALS = Error(
    "INVALID_CREDENTIALS", "Invalid email or password", ErrorKind.invalid_credentials
)
INVALID_TOKEN = Error(
    "INVALID_TOKEN", "Session expired, please sign in again", ErrorKind.invalid_token
)
EMAIL_ALREADY_EXISTS = Error(
    "EMAIL_ALREADY_EXISTS", "Email already registered", ErrorKind.conflict
)
OAUTH_ACCOUNT_CONFLICT = Error(
    "OAUTH_ACCOUNT_CONFLICT",
    "An account for this provider already uses this email",
    ErrorKind.conflict,
)
USER_NOT_FOUND = Error("USER_NOT_FOUND", "User not found", ErrorKind.not_found)


def weak_password(problems: List[str]) -> Error:
    return Error(
        "WEAK_PASSWORD",
        "Password does not meet the requirements",
        ErrorKind.validation,
        details={"password": problems},
    )


def unsupported_provider(provider: str) -> Error:
    return Error(
        "UNSUPPORTED_PROVIDER",
        f"Provider '{provider}' is not supported for OAuth login",
        ErrorKind.validation,
    )
