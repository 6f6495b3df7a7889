"""Authentication service: passwords, registration, login and sessions."""

import logging
from dataclasses import dataclass

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User, UserToken
from app.services.jwt import JWTService, get_jwt_service

logger = logging.getLogger("task_manager")

LOGIN_FAILED = "Unable to login"
EMAIL_TAKEN = "Email already registered"


@dataclass
class AuthResult:
    """Result of a registration or login attempt."""

    success: bool
    error: str | None = None
    user: User | None = None


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt at the configured cost factor."""
    rounds = get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # bcrypt rejects over-long input and malformed hashes
        return False


def email_in_use(db: Session, email: str, exclude_user_id: str | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email.strip().lower())
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


class AuthService:
    """Handles user registration, credential checks and session tokens."""

    def __init__(self, jwt_service: JWTService | None = None) -> None:
        self._jwt_service = jwt_service

    @property
    def jwt_service(self) -> JWTService:
        return self._jwt_service or get_jwt_service()

    def register(self, db: Session, name: str, email: str, password: str, age: int = 0) -> AuthResult:
        """Create a user. The password must already satisfy the password policy."""
        if email_in_use(db, email):
            return AuthResult(success=False, error=EMAIL_TAKEN)

        user = User(
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=hash_password(password),
            age=age,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return AuthResult(success=False, error=EMAIL_TAKEN)
        db.refresh(user)

        logger.info("Registered user %s", user.id)
        return AuthResult(success=True, user=user)

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Check credentials. The error never says whether the email or the password was wrong."""
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash):
            return AuthResult(success=False, error=LOGIN_FAILED)
        return AuthResult(success=True, user=user)

    def issue_token(self, db: Session, user: User) -> str:
        """Sign a new session token and persist it before handing it out."""
        token = self.jwt_service.create_token(user.id)
        user.tokens.append(UserToken(token=token))
        db.commit()
        return token

    def revoke_token(self, db: Session, user: User, token: str) -> None:
        """End a single session. Other sessions of the user stay valid."""
        user.tokens = [t for t in user.tokens if t.token != token]
        db.commit()

    def revoke_all_tokens(self, db: Session, user: User) -> None:
        """End every session of the user."""
        user.tokens = []
        db.commit()

    def resolve_token(self, db: Session, token: str) -> User | None:
        """Return the user owning a live session for this token, or None.

        The signature must verify and the token must still be in the user's
        token list. A deleted user and a revoked token look the same.
        """
        payload = self.jwt_service.decode_token(token)
        if not payload:
            return None
        return (
            db.query(User)
            .join(UserToken, UserToken.user_id == User.id)
            .filter(User.id == payload["sub"], UserToken.token == token)
            .first()
        )


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
