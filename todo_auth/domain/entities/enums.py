"""
Domain Enums

Enumeration types used across domain entities.
"""

from enum import Enum


class AuthProvider(str, Enum):
    """Where a user's identity is proven"""

    local = "local"
    google = "google"
    microsoft = "microsoft"
    github = "github"
