"""Authentication dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.services.auth import get_auth_service

AUTH_FAILED = "Please authenticate."
BEARER_PREFIX = "Bearer "


@dataclass
class CurrentUser:
    """Authenticated user context: the user row and the token used for this request."""

    user: User
    token: str


def get_bearer_token(request: Request) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header, if well formed."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX) :].strip()
    return token or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to a live session. Raises 401 if anything is off."""
    token = get_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail=AUTH_FAILED)

    user = get_auth_service().resolve_token(db, token)
    if user is None:
        raise HTTPException(status_code=401, detail=AUTH_FAILED)

    return CurrentUser(user=user, token=token)
