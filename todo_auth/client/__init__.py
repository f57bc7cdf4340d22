"""
Auth client

Talks to the auth API over httpx and keeps the signed-in session on the
client side.
"""

from .api import AuthApi
from .auth_service import AuthService
from .models import AuthSession
from .session_store import SESSION_KEY, SessionStore
from .storage import FileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "AuthApi",
    "AuthService",
    "AuthSession",
    "SESSION_KEY",
    "SessionStore",
    "FileStorage",
    "KeyValueStorage",
    "MemoryStorage",
]
