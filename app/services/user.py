"""User profile service: updates, account deletion and avatars."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User
from app.services.auth import EMAIL_TAKEN, email_in_use, hash_password
from app.services.task import get_task_service
from app.services.updates import USER_UPDATABLE_FIELDS, check_allowed_updates

logger = logging.getLogger("task_manager")


class EmailTakenError(ValueError):
    """Raised when a profile update would duplicate another user's email."""

    def __init__(self) -> None:
        super().__init__(EMAIL_TAKEN)


class UserService:
    """Handles profile changes and account lifecycle."""

    def update_profile(self, db: Session, user: User, changes: dict) -> User:
        """Apply validated profile changes.

        Raises InvalidUpdateError for fields outside the allow-list and
        EmailTakenError for a duplicate email, in both cases before any change
        is applied. A password is hashed only when it is part of ``changes``.
        """
        check_allowed_updates(changes, USER_UPDATABLE_FIELDS)
        if "email" in changes and email_in_use(db, changes["email"], exclude_user_id=user.id):
            raise EmailTakenError()

        for field, value in changes.items():
            if field == "password":
                user.password_hash = hash_password(value)
            else:
                setattr(user, field, value)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise EmailTakenError() from None
        db.refresh(user)
        return user

    def delete_account(self, db: Session, user: User) -> None:
        """Delete the user's tasks and then the user, in one transaction."""
        user_id = user.id
        deleted_tasks = get_task_service().delete_user_tasks(db, user_id)
        db.delete(user)
        db.commit()
        logger.info("Deleted user %s and %d task(s)", user_id, deleted_tasks)

    def set_avatar(self, db: Session, user: User, image: bytes) -> None:
        user.avatar = image
        db.commit()

    def clear_avatar(self, db: Session, user: User) -> None:
        user.avatar = None
        db.commit()

    def get_avatar(self, db: Session, user_id: str) -> bytes | None:
        """Return a user's stored avatar, or None if the user or avatar is missing."""
        avatar = db.query(User.avatar).filter(User.id == user_id).scalar()
        return avatar or None


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
