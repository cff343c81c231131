"""Reminder rule schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sentinel.models.enums import NotificationChannel


def _clean_days(days: list[int] | None) -> list[int] | None:
    if days is None:
        return None
    if any(d < 0 for d in days):
        raise ValueError("days_before values cannot be negative")
    return sorted(set(days), reverse=True)


def _clean_channels(channels: list[NotificationChannel] | None) -> list[NotificationChannel] | None:
    if channels is None:
        return None
    # Keep first occurrence order
    return list(dict.fromkeys(channels))


class ReminderRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    days_before: list[int] = Field(default_factory=lambda: [30, 14, 7, 3, 1, 0], min_length=1)
    channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.TELEGRAM, NotificationChannel.WHATSAPP],
        min_length=1,
    )
    target_entity_type: str = Field("item", max_length=50)
    is_active: bool = True

    @field_validator("days_before")
    @classmethod
    def clean_days(cls, v):
        return _clean_days(v)

    @field_validator("channels")
    @classmethod
    def clean_channels(cls, v):
        return _clean_channels(v)


class ReminderRuleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    days_before: list[int] | None = Field(None, min_length=1)
    channels: list[NotificationChannel] | None = Field(None, min_length=1)
    is_active: bool | None = None

    @field_validator("days_before")
    @classmethod
    def clean_days(cls, v):
        return _clean_days(v)

    @field_validator("channels")
    @classmethod
    def clean_channels(cls, v):
        return _clean_channels(v)


class ReminderRuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    days_before: list[int]
    channels: list[NotificationChannel]
    target_entity_type: str
    is_active: bool
    created_at: datetime
