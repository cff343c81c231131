"""Message template schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sentinel.models.enums import TemplateChannel, TemplateType


class MessageTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    channel: TemplateChannel = TemplateChannel.ALL
    template_type: TemplateType = TemplateType.REMINDER
    escalation_level: int | None = Field(None, ge=0, le=4)
    template_text: str = Field(..., min_length=1)
    required_fields: list[str] = Field(default_factory=list)
    optional_fields: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_default: bool = False


class MessageTemplateUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    channel: TemplateChannel | None = None
    escalation_level: int | None = Field(None, ge=0, le=4)
    template_text: str | None = Field(None, min_length=1)
    required_fields: list[str] | None = None
    optional_fields: list[str] | None = None
    is_active: bool | None = None
    is_default: bool | None = None


class MessageTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    channel: TemplateChannel
    template_type: TemplateType
    escalation_level: int | None
    template_text: str
    required_fields: list[str]
    optional_fields: list[str]
    version: int
    is_active: bool
    is_default: bool
    created_at: datetime
    updated_at: datetime


class TemplatePreviewRequest(BaseModel):
    """Render against an item, explicit sample values, or both (sample values win)."""

    item_id: uuid.UUID | None = None
    days_left: int | None = None
    sample_data: dict[str, Any] = Field(default_factory=dict)


class TemplatePreviewResponse(BaseModel):
    rendered: str
    placeholders: list[str]
    missing_fields: list[str] = []
