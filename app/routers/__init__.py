"""API routers."""

from app.routers.tasks import router as tasks_router
from app.routers.users import router as users_router

__all__ = ["users_router", "tasks_router"]
