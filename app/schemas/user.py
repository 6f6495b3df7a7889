"""Pydantic schemas for user endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

MIN_PASSWORD_LENGTH = 7
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


def clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required.")
    return value


def clean_email(value: str) -> str:
    return value.strip().lower()


def clean_password(value: str) -> str:
    """Trim a new password and enforce the password policy."""
    value = value.strip()
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    if "password" in value.lower():
        raise ValueError('Password must not contain "password".')
    return value


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    age: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return clean_name(value)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        return clean_email(value) if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return clean_password(value)


class UserUpdateRequest(BaseModel):
    """Profile fields a user may change. Unknown keys are rejected by the router first."""

    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None
    age: int | None = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("Name is required.")
        return clean_name(value)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        if value is None:
            raise ValueError("Email is required.")
        return clean_email(value) if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("Password is required.")
        return clean_password(value)

    @field_validator("age")
    @classmethod
    def check_age(cls, value: int | None) -> int | None:
        if value is None:
            raise ValueError("Age must be a number.")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    age: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
