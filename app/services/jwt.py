"""JWT Token Service."""

import uuid
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt

from app.config import Settings, get_settings


class JWTService:
    """Signs and verifies session tokens.

    Tokens carry no expiry. A token stays usable for as long as the owning
    user keeps it in their token list, so revocation is handled by the store.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM

    def create_token(self, user_id: str) -> str:
        """Create a signed token for the given user."""
        payload = {
            "sub": str(user_id),
            "iat": datetime.now(timezone.utc),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Verify the signature and decode a token. Returns None if invalid."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if not isinstance(payload.get("sub"), str) or not payload["sub"]:
            return None
        return payload

    def is_token_valid(self, token: str) -> bool:
        """Check if a token carries a valid signature."""
        return self.decode_token(token) is not None


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service instance."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
