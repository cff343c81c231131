"""Recipient schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RecipientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    whatsapp_number: str | None = Field(None, max_length=32)
    telegram_chat_id: str | None = Field(None, max_length=64)
    user_id: uuid.UUID | None = None
    allow_whatsapp: bool = True
    allow_telegram: bool = True
    allow_email: bool = True
    allow_in_app: bool = True
    is_active: bool = True


class RecipientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    whatsapp_number: str | None = Field(None, max_length=32)
    telegram_chat_id: str | None = Field(None, max_length=64)
    user_id: uuid.UUID | None = None
    allow_whatsapp: bool | None = None
    allow_telegram: bool | None = None
    allow_email: bool | None = None
    allow_in_app: bool | None = None
    is_active: bool | None = None


class RecipientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str | None
    whatsapp_number: str | None
    telegram_chat_id: str | None
    user_id: uuid.UUID | None
    allow_whatsapp: bool
    allow_telegram: bool
    allow_email: bool
    allow_in_app: bool
    is_active: bool
    created_at: datetime
