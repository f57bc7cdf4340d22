from datetime import UTC, datetime, timedelta
from typing import List, Optional
from uuid import uuid4

from jose import JWTError, jwt

from todo_auth.app.services.token_issuer import IssuedAccessToken, ITokenIssuer
from todo_auth.domain.entities import User

ALGORITHM = "HS256"


class ConfigurationError(Exception):
    """Startup configuration is unusable; the service must not start"""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


def validate_jwt_settings(
    secret: Optional[str],
    issuer: Optional[str],
    audience: Optional[str],
    access_token_expiration_minutes: int,
    refresh_token_expiration_days: int,
    environment: str = "development",
) -> List[str]:
    """
    Collect every problem with the signing configuration.

    Returns:
        List of human readable problems, empty when the settings are usable
    """
    problems = []

    if not secret or not secret.strip():
        problems.append("JWT secret is required")
    elif environment == "production" and len(secret) < 32:
        problems.append("JWT secret must be at least 32 characters in production")
    elif len(secret) < 16:
        problems.append("JWT secret must be at least 16 characters")

    if not issuer or not issuer.strip():
        problems.append("JWT issuer is required")
    if not audience or not audience.strip():
        problems.append("JWT audience is required")

    if not 1 <= access_token_expiration_minutes <= 1440:
        problems.append("Access token expiration must be between 1 and 1440 minutes")
    if not 1 <= refresh_token_expiration_days <= 365:
        problems.append("Refresh token expiration must be between 1 and 365 days")

    return problems


class JwtTokenIssuer(ITokenIssuer):
    """HS256 access tokens signed with a shared secret"""

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        access_token_expiration_minutes: int = 15,
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.expires_delta = timedelta(minutes=access_token_expiration_minutes)

    @classmethod
    def from_config(cls, config) -> "JwtTokenIssuer":
        """
        Build the issuer from application config.

        Raises:
            ConfigurationError: if the signing settings are missing or invalid
        """
        problems = validate_jwt_settings(
            secret=config.JWT_SECRET,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            access_token_expiration_minutes=config.ACCESS_TOKEN_EXPIRATION_MINUTES,
            refresh_token_expiration_days=config.REFRESH_TOKEN_EXPIRATION_DAYS,
            environment=config.ENVIRONMENT,
        )
        if problems:
            raise ConfigurationError(problems)
        return cls(
            secret=config.JWT_SECRET,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            access_token_expiration_minutes=config.ACCESS_TOKEN_EXPIRATION_MINUTES,
        )

    def issue(self, user: User) -> IssuedAccessToken:
        """
        Generate JWT access token

        Args:
            user: Persisted user the token is issued to

        Returns:
            IssuedAccessToken with the encoded token, its jti and expiry (naive UTC)
        """
        now = datetime.now(UTC)
        expires_at = now + self.expires_delta
        jti = str(uuid4())
        payload = {
            "sub": str(user.id),
            "unique_name": user.email,
            "email": user.email,
            "jti": jti,
            "token_type": "access",
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self.secret, algorithm=ALGORITHM)
        return IssuedAccessToken(
            token=token, jti=jti, expires_at=expires_at.replace(tzinfo=None)
        )

    def verify(self, token: str) -> Optional[dict]:
        """
        Verify and decode JWT token

        Args:
            token: JWT token string

        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError:
            return None

        if payload.get("token_type") != "access" or not payload.get("sub"):
            return None
        return payload
