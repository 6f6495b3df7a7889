"""Pydantic schemas for task endpoints."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator


def clean_description(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Description is required.")
    return value


class TaskCreateRequest(BaseModel):
    """New task payload. Extra keys such as ``owner`` are ignored."""

    description: str
    completed: bool = False

    @field_validator("description")
    @classmethod
    def check_description(cls, value: str) -> str:
        return clean_description(value)


class TaskUpdateRequest(BaseModel):
    description: str | None = None
    completed: bool | None = None

    @field_validator("description")
    @classmethod
    def check_description(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Description is required.")
        return clean_description(value)

    @field_validator("completed")
    @classmethod
    def check_completed(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError("Completed must be a boolean.")
        return value


class TaskResponse(BaseModel):
    id: str
    description: str
    completed: bool
    owner: str = Field(validation_alias=AliasChoices("owner_id", "owner"))
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
