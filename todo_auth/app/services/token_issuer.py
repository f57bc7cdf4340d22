from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from todo_auth.domain.entities import User


class IssuedAccessToken(BaseModel):
    """A signed access token and the facts the caller reports about it"""

    token: str
    jti: str
    expires_at: datetime


class ITokenIssuer(ABC):
    """Access token issuer interface - application layer"""

    @abstractmethod
    def issue(self, user: User) -> IssuedAccessToken:
        """Sign a time-bounded access token for a user"""
        pass

    @abstractmethod
    def verify(self, token: str) -> Optional[dict]:
        """Return the token claims, or None if the token is not acceptable"""
        pass
