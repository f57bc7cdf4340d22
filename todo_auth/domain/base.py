from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching how timestamps are stored."""
    return datetime.now(UTC).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    return email.strip().lower()
