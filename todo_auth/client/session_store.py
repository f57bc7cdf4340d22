import logging
from typing import Optional

from pydantic import ValidationError

from todo_auth.client.models import AuthSession
from todo_auth.client.storage import KeyValueStorage

logger = logging.getLogger(__name__)

SESSION_KEY = "todoapp.auth.session"


class SessionStore:
    """
    Persists the signed-in session as a single JSON value.

    Tokens, expiries and user info are written together so a half-written
    session is never observable.
    """

    def __init__(self, storage: KeyValueStorage, key: str = SESSION_KEY):
        self.storage = storage
        self.key = key

    async def save(self, session: AuthSession) -> None:
        await self.storage.set(self.key, session.model_dump_json())

    async def load(self) -> Optional[AuthSession]:
        try:
            raw = await self.storage.get(self.key)
        except UnicodeDecodeError:
            logger.warning("Discarding stored session that is not valid UTF-8")
            await self.storage.remove(self.key)
            return None

        if raw is None or not raw.strip():
            return None

        try:
            return AuthSession.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable stored session: {exc.error_count()} errors")
            await self.storage.remove(self.key)
            return None

    async def clear(self) -> None:
        await self.storage.remove(self.key)
