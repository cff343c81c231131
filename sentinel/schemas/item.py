"""Item and workflow schemas."""

import uuid
from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sentinel.models.enums import NotificationChannel, WorkflowStatus


class ItemCreate(BaseModel):
    """Create a new item."""

    title: str = Field(..., min_length=1, max_length=500)
    ref_number: str | None = Field(None, max_length=100)
    expiry_date: date
    expiry_time: time | None = None
    department_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    responsible_person: str | None = Field(None, max_length=255)
    responsible_user_id: uuid.UUID | None = None
    reminder_rule_id: uuid.UUID | None = None
    notes: str | None = Field(None, max_length=5000)
    dynamic_fields: dict[str, Any] | None = None
    recipient_ids: list[uuid.UUID] = Field(default_factory=list)


class ItemUpdate(BaseModel):
    """Update an item; workflow status changes go through the workflow endpoint."""

    title: str | None = Field(None, min_length=1, max_length=500)
    ref_number: str | None = Field(None, max_length=100)
    expiry_date: date | None = None
    expiry_time: time | None = None
    department_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    responsible_person: str | None = Field(None, max_length=255)
    responsible_user_id: uuid.UUID | None = None
    reminder_rule_id: uuid.UUID | None = None
    notes: str | None = Field(None, max_length=5000)
    dynamic_fields: dict[str, Any] | None = None
    recipient_ids: list[uuid.UUID] | None = None
    expected_version: int | None = None

    @field_validator("title", "expiry_date")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class RecipientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class ItemResponse(BaseModel):
    """Item response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    ref_number: str | None
    expiry_date: date
    expiry_time: time | None
    workflow_status: WorkflowStatus
    department_id: uuid.UUID | None
    category_id: uuid.UUID | None
    responsible_person: str | None
    responsible_user_id: uuid.UUID | None
    created_by_id: uuid.UUID | None
    reminder_rule_id: uuid.UUID | None
    notes: str | None
    dynamic_fields: dict[str, Any] | None
    completion_description: str | None
    completion_attachment_url: str | None
    completion_date: datetime | None
    completed_by_id: uuid.UUID | None
    acknowledged_at: datetime | None
    started_at: datetime | None
    finished_at: datetime | None
    version: int
    recipients: list[RecipientSummary] = []
    created_at: datetime
    updated_at: datetime


class WorkflowActionRequest(BaseModel):
    """Request a workflow transition by action name or by target status."""

    action: str | None = None
    target_status: WorkflowStatus | None = None
    reason: str | None = Field(None, max_length=2000)
    completion_description: str | None = Field(None, max_length=5000)
    completion_attachment_url: str | None = Field(None, max_length=1000)
    expected_version: int | None = None

    @model_validator(mode="after")
    def require_action_or_target(self) -> "WorkflowActionRequest":
        if not self.action and self.target_status is None:
            raise ValueError("Either action or target_status is required")
        return self


class AvailableAction(BaseModel):
    action: str
    label: str
    target: WorkflowStatus
    requires_reason: bool
    requires_proof: bool


class StatusLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    old_status: WorkflowStatus | None
    new_status: WorkflowStatus
    reason: str | None
    channel: str
    changed_by_id: uuid.UUID | None
    changed_at: datetime


class ReminderPreview(BaseModel):
    """A reminder that would go out for the item on a given day."""

    recipient_id: uuid.UUID
    recipient_name: str
    channel: NotificationChannel
    address: str
    days_left: int
    message: str


class ReminderPreviewResponse(BaseModel):
    date: date
    days_left: int
    is_due: bool
    reminders: list[ReminderPreview]
