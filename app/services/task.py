"""Task service. Every query is scoped to the owning user."""

import re
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.task import Task
from app.services.updates import TASK_UPDATABLE_FIELDS, check_allowed_updates

SORTABLE_COLUMNS = {
    "description": Task.description,
    "completed": Task.completed,
    "createdAt": Task.created_at,
    "created_at": Task.created_at,
    "updatedAt": Task.updated_at,
    "updated_at": Task.updated_at,
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_page_param(value: str | None) -> int | None:
    """Read the leading integer of a limit/skip parameter. Missing, junk or non-positive means no bound."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


@dataclass
class TaskQuery:
    """Filter, sort and paging options for listing tasks."""

    completed: bool | None = None
    sort_field: str | None = None
    descending: bool = False
    limit: int | None = None
    skip: int | None = None

    @classmethod
    def from_params(
        cls,
        completed: str | None = None,
        sort_by: str | None = None,
        limit: str | None = None,
        skip: str | None = None,
    ) -> "TaskQuery":
        query = cls(limit=parse_page_param(limit), skip=parse_page_param(skip))
        if completed:
            query.completed = completed == "true"
        if sort_by:
            field, _, direction = sort_by.partition(":")
            query.sort_field = field
            query.descending = direction == "desc"
        return query


class TaskService:
    """Handles task CRUD for a single owner."""

    def create_task(self, db: Session, owner_id: str, description: str, completed: bool = False) -> Task:
        """Create a task owned by ``owner_id``."""
        task = Task(description=description, completed=completed, owner_id=owner_id)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    def get_user_tasks(self, db: Session, owner_id: str, options: TaskQuery | None = None) -> list[Task]:
        """List the owner's tasks with optional filter, sort and paging."""
        options = options or TaskQuery()
        query = db.query(Task).filter(Task.owner_id == owner_id)

        if options.completed is not None:
            query = query.filter(Task.completed == options.completed)

        column = SORTABLE_COLUMNS.get(options.sort_field or "")
        if column is not None:
            query = query.order_by(column.desc() if options.descending else column.asc())
        query = query.order_by(Task.created_at.asc())

        if options.skip:
            query = query.offset(options.skip)
        if options.limit:
            query = query.limit(options.limit)
        return query.all()

    def get_task(self, db: Session, task_id: str, owner_id: str) -> Task | None:
        """Get a single task by ID, scoped to its owner."""
        return db.query(Task).filter(Task.id == task_id, Task.owner_id == owner_id).first()

    def update_task(self, db: Session, task: Task, changes: dict) -> Task:
        """Apply validated changes. Raises InvalidUpdateError before touching the task."""
        check_allowed_updates(changes, TASK_UPDATABLE_FIELDS)
        for field, value in changes.items():
            setattr(task, field, value)
        db.commit()
        db.refresh(task)
        return task

    def delete_task(self, db: Session, task: Task) -> None:
        db.delete(task)
        db.commit()

    def delete_user_tasks(self, db: Session, owner_id: str) -> int:
        """Delete every task of an owner without committing. Returns the number deleted."""
        return db.query(Task).filter(Task.owner_id == owner_id).delete(synchronize_session=False)


_task_service: TaskService | None = None


def get_task_service() -> TaskService:
    """Get singleton task service instance."""
    global _task_service
    if _task_service is None:
        _task_service = TaskService()
    return _task_service
