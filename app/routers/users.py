"""User API endpoints: accounts, sessions and avatars."""

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.rate_limit import limiter
from app.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse, UserUpdateRequest
from app.services.auth import get_auth_service
from app.services.avatar import AVATAR_MEDIA_TYPE, AvatarError, get_avatar_service
from app.services.email import deliver, get_email_service
from app.services.updates import USER_UPDATABLE_FIELDS, InvalidUpdateError, check_allowed_updates
from app.services.user import EmailTakenError, get_user_service

logger = logging.getLogger("task_manager")

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> AuthResponse:
    """Register a new user account and open a first session."""
    auth_service = get_auth_service()
    result = auth_service.register(db, body.name, body.email, body.password, body.age)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    user = result.user
    background_tasks.add_task(deliver, get_email_service().send_welcome_email, user.email, user.name)
    token = auth_service.issue_token(db, user)

    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """Authenticate and open an additional session."""
    auth_service = get_auth_service()
    result = auth_service.authenticate(db, body.email, body.password)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    token = auth_service.issue_token(db, result.user)
    return AuthResponse(user=UserResponse.model_validate(result.user), token=token)


@router.post("/logout")
def logout(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """End the session used for this request."""
    get_auth_service().revoke_token(db, current.user, current.token)
    return {"detail": "Logged out"}


@router.post("/logoutAll")
def logout_all(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """End every session of the current user."""
    get_auth_service().revoke_all_tokens(db, current.user)
    logger.info("Logged out all sessions of user %s", current.user.id)
    return {"detail": "Logged out of all sessions"}


@router.get("/me", response_model=UserResponse)
def read_profile(current: CurrentUser = Depends(get_current_user)) -> UserResponse:
    """Get the current user's profile."""
    return UserResponse.model_validate(current.user)


@router.patch("/me", response_model=UserResponse)
def update_profile(
    body: dict[str, Any] = Body(...),
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Update name, email, password or age. Any other field rejects the request."""
    try:
        check_allowed_updates(body, USER_UPDATABLE_FIELDS)
        changes = UserUpdateRequest.model_validate(body).model_dump(include=set(body))
        user = get_user_service().update_profile(db, current.user, changes)
    except InvalidUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from None
    except EmailTakenError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    return UserResponse.model_validate(user)


@router.delete("/me", response_model=UserResponse)
def delete_account(
    background_tasks: BackgroundTasks,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Delete the current user together with all of their tasks."""
    deleted = UserResponse.model_validate(current.user)
    get_user_service().delete_account(db, current.user)
    background_tasks.add_task(deliver, get_email_service().send_cancellation_email, deleted.email, deleted.name)
    return deleted


@router.post("/me/avatar")
async def upload_avatar(
    avatar: UploadFile,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Upload a JPG or PNG avatar. It is stored as a 250x250 PNG."""
    try:
        image = await get_avatar_service().process_upload(avatar)
    except AvatarError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    get_user_service().set_avatar(db, current.user, image)
    return {"detail": "Avatar uploaded"}


@router.delete("/me/avatar")
def delete_avatar(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """Remove the current user's avatar."""
    get_user_service().clear_avatar(db, current.user)
    return {"detail": "Avatar deleted"}


@router.get("/{user_id}/avatar")
def get_avatar(user_id: str, db: Session = Depends(get_db)) -> Response:
    """Serve a user's avatar. Public."""
    avatar = get_user_service().get_avatar(db, user_id)
    if not avatar:
        raise HTTPException(status_code=404)
    return Response(content=avatar, media_type=AVATAR_MEDIA_TYPE)
