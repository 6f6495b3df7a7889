"""Task API endpoints. Every route is scoped to the authenticated owner."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.schemas.task import TaskCreateRequest, TaskResponse, TaskUpdateRequest
from app.services.task import TaskQuery, get_task_service
from app.services.updates import TASK_UPDATABLE_FIELDS, InvalidUpdateError, check_allowed_updates

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(
    body: TaskCreateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskResponse:
    """Create a task owned by the current user."""
    service = get_task_service()
    task = service.create_task(db, current.user.id, body.description, body.completed)
    return TaskResponse.model_validate(task)


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    completed: str | None = None,
    sort_by: str | None = Query(default=None, alias="sortBy"),
    limit: str | None = None,
    skip: str | None = None,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TaskResponse]:
    """List the current user's tasks.

    ``completed=true|false`` filters, ``sortBy=field:desc`` sorts (any other
    direction is ascending), ``limit`` and ``skip`` paginate.
    """
    service = get_task_service()
    options = TaskQuery.from_params(completed=completed, sort_by=sort_by, limit=limit, skip=skip)
    tasks = service.get_user_tasks(db, current.user.id, options)
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskResponse:
    """Get a single task by ID."""
    task = get_task_service().get_task(db, task_id, current.user.id)
    if not task:
        raise HTTPException(status_code=404)
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    body: dict[str, Any] = Body(...),
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskResponse:
    """Update description or completed. Any other field rejects the request."""
    try:
        check_allowed_updates(body, TASK_UPDATABLE_FIELDS)
        changes = TaskUpdateRequest.model_validate(body).model_dump(include=set(body))
    except InvalidUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from None

    service = get_task_service()
    task = service.get_task(db, task_id, current.user.id)
    if not task:
        raise HTTPException(status_code=404)

    task = service.update_task(db, task, changes)
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", response_model=TaskResponse)
def delete_task(
    task_id: str,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskResponse:
    """Delete a task and return it."""
    service = get_task_service()
    task = service.get_task(db, task_id, current.user.id)
    if not task:
        raise HTTPException(status_code=404)

    deleted = TaskResponse.model_validate(task)
    service.delete_task(db, task)
    return deleted
