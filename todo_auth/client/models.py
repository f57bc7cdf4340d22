from datetime import datetime, timedelta

from pydantic import BaseModel

from todo_auth.app.use_cases.auth.dtos import AuthResponse, UserInfo


class AuthSession(BaseModel):
    """What the client keeps between runs after signing in"""

    user: UserInfo
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime

    @classmethod
    def from_auth_response(cls, response: AuthResponse) -> "AuthSession":
        return cls(
            user=response.user,
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            access_token_expires_at=response.access_token_expires_at,
            refresh_token_expires_at=response.refresh_token_expires_at,
        )

    def access_token_expiring(self, now: datetime, leeway: timedelta) -> bool:
        return self.access_token_expires_at - leeway <= now

    def refresh_token_expired(self, now: datetime) -> bool:
        return self.refresh_token_expires_at <= now
