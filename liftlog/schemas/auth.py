"""Auth request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from liftlog.core.constants import MIN_PASSWORD_LENGTH


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=72)
    name: str | None = Field(None, max_length=255)

    normalize_email = field_validator("email")(_normalize_email)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    remember_me: bool = False

    normalize_email = field_validator("email")(_normalize_email)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    email: str
    name: str | None = None
    created_at: datetime


class TokenRead(BaseModel):
    """Bearer token issued on login; the same value is set as the session cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    remember_me: bool = False
    user: UserRead
