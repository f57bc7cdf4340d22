import asyncio
import logging

from google.auth import exceptions
from google.auth.transport import requests
from google.oauth2 import id_token

from todo_auth.app.services.oauth_identity_verifier import (
    ExternalIdentity,
    IOAuthIdentityVerifier,
)
from todo_auth.domain.entities import AuthProvider
from todo_auth.libs.result import Error, ErrorKind, Result, Return

logger = logging.getLogger(__name__)

INVALID_GOOGLE_TOKEN = Error(
    "INVALID_CREDENTIALS", "Invalid Google identity token", ErrorKind.invalid_credentials
)


class GoogleIdentityVerifier(IOAuthIdentityVerifier):
    """Verifies Google ID tokens against Google's published signing keys"""

    provider = AuthProvider.google

    def __init__(self, client_id: str):
        self.client_id = client_id

    async def verify(self, token: str) -> Result[ExternalIdentity]:
        try:
            # Fetches Google's certificates over the network
            payload = await asyncio.to_thread(verify_google_id_token, token, self.client_id)
        except exceptions.TransportError:
            raise
        except (ValueError, exceptions.GoogleAuthError) as exc:
            logger.warning(f"Google ID token rejected: {exc}")
            return Return.err(INVALID_GOOGLE_TOKEN)

        subject = payload.get("sub")
        email = payload.get("email")
        if not subject or not email:
            logger.warning("Google ID token missing sub or email claim")
            return Return.err(INVALID_GOOGLE_TOKEN)

        return Return.ok(
            ExternalIdentity(
                provider=AuthProvider.google,
                provider_user_id=str(subject),
                email=str(email),
            )
        )


def verify_google_id_token(token: str, audience: str) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
