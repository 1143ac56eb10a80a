"""JWT token service for anonymous sessions."""

from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from voice_changer.config import get_settings


class JWTService:
    """Handles JWT token creation and validation."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 480) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_token(self, session_id: str, email: str | None = None) -> tuple[str, datetime]:
        """Create a token for an anonymous session. Returns (token, expires_at)."""
        expire = datetime.utcnow() + timedelta(minutes=self.expire_minutes)
        payload: dict[str, Any] = {"sub": session_id, "exp": expire, "role": "anon"}
        if email:
            payload["email"] = email
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm), expire

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode and validate a JWT token. Returns None if invalid."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

    def is_token_valid(self, token: str) -> bool:
        """Check if a token is valid."""
        return self.decode_token(token) is not None


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service for browser session cookies."""
    global _jwt_service
    if _jwt_service is None:
        settings = get_settings()
        _jwt_service = JWTService(
            settings.SESSION_SECRET_KEY,
            algorithm=settings.SESSION_ALGORITHM,
            expire_minutes=settings.SESSION_EXPIRE_MINUTES,
        )
    return _jwt_service
