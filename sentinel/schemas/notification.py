"""Notification-related Pydantic schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel

from sentinel.models.enums import DeliveryStatus, InAppNotificationType, NotificationChannel


class InAppNotificationResponse(BaseModel):
    """Schema for an in-app notification."""

    id: uuid.UUID
    item_id: uuid.UUID | None
    escalation_id: uuid.UUID | None
    notification_type: InAppNotificationType
    title: str
    message: str
    priority: str
    action_url: str | None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    unread: int


class MarkReadResult(BaseModel):
    updated: int


class DeliveryLogResponse(BaseModel):
    """Schema for one reminder delivery attempt."""

    id: uuid.UUID
    item_id: uuid.UUID
    recipient_id: uuid.UUID
    channel: NotificationChannel
    reminder_day: int
    sent_on: date
    status: DeliveryStatus
    provider_message_id: str | None
    error_message: str | None
    attempts: int
    sent_at: datetime | None

    model_config = {"from_attributes": True}
