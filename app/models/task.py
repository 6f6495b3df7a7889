"""Task model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from app.database import Base
from app.models.user import new_id


class Task(Base):
    """To-do item owned by exactly one user."""

    __tablename__ = "task"

    id = Column(String(32), primary_key=True, default=new_id)
    description = Column(Text, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    owner_id = Column(String(32), ForeignKey("user.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
