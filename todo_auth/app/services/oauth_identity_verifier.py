from abc import ABC, abstractmethod

from pydantic import BaseModel

from todo_auth.domain.entities import AuthProvider
from todo_auth.libs.result import Result


class ExternalIdentity(BaseModel):
    """Who an OAuth provider says the token holder is"""

    provider: AuthProvider
    provider_user_id: str
    email: str


class IOAuthIdentityVerifier(ABC):
    """OAuth identity token verifier interface - application layer"""

    provider: AuthProvider

    @abstractmethod
    async def verify(self, token: str) -> Result[ExternalIdentity]:
        """Check the provider's signature and audience, return the identity"""
        pass
