"""JWT Token Service."""

from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from account_service.config import Settings

LOGIN_TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60


class TokenConfigError(RuntimeError):
    """Raised when tokens are requested but no signing secret is configured."""


class InvalidTokenError(Exception):
    """Raised for any token that fails verification."""


class TokenService:
    """Signs and verifies expiring bearer tokens. Holds no per-token state."""

    def __init__(self, settings: Settings) -> None:
        self.secret_key = settings.SECRET
        self.algorithm = settings.JWT_ALGORITHM

    def _require_secret(self) -> str:
        if not self.secret_key:
            raise TokenConfigError("SECRET is not configured; cannot sign or verify tokens")
        return self.secret_key

    def issue(self, payload: dict[str, Any], ttl_seconds: int, issued_at: datetime | None = None) -> str:
        """Sign ``payload`` into a token that expires ``ttl_seconds`` after ``issued_at``."""
        secret = self._require_secret()
        issued_at = issued_at or datetime.utcnow()
        claims = {
            **payload,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=ttl_seconds),
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode and validate a token. Raises InvalidTokenError if it is bad or expired."""
        secret = self._require_secret()
        try:
            return jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidTokenError("Failed to authenticate token.") from exc

