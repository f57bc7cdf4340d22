"""
Domain Entities

All domain entities organized by model.
"""

from .enums import AuthProvider
from .user import User
from .refresh_token import RefreshToken

__all__ = [
    # Enums
    "AuthProvider",
    # Entities
    "User",
    "RefreshToken",
]
