"""Authentication and user schemas."""

import uuid

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from sentinel.models.enums import Role


class UserRegister(BaseModel):
    """Organization sign-up: creates the tenant and its first admin."""

    tenant_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(None, max_length=255)


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class UserCreate(BaseModel):
    """Admin-created user inside the caller's tenant."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(None, max_length=255)
    role: Role = Role.EMPLOYEE
    phone: str | None = Field(None, max_length=32)
    telegram_chat_id: str | None = Field(None, max_length=64)
    department_id: uuid.UUID | None = None


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    email: str
    name: str | None
    role: Role
    phone: str | None = None
    telegram_chat_id: str | None = None
    department_id: uuid.UUID | None = None


class AuthResponse(BaseModel):
    """Authentication response with token and user info."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse
