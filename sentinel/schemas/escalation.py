"""Escalation schemas: logs, rules and the organizational hierarchy."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from sentinel.models.enums import EscalationStatus, NotificationChannel, escalation_level_label


class EscalationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    item_id: uuid.UUID
    escalation_level: int
    status: EscalationStatus
    original_recipient_id: uuid.UUID
    current_recipient_id: uuid.UUID
    previous_recipient_id: uuid.UUID | None
    sent_at: datetime
    next_escalation_at: datetime | None
    escalated_at: datetime | None
    acknowledged_at: datetime | None
    acknowledged_by_id: uuid.UUID | None
    resolved_at: datetime | None
    escalation_reason: str | None
    resolution_notes: str | None

    @computed_field
    @property
    def level_label(self) -> str:
        return escalation_level_label(self.escalation_level)


class EscalationStats(BaseModel):
    total: int
    by_status: dict[str, int]
    by_level: dict[str, int]
    overdue: int


class EscalationStatusPreview(BaseModel):
    """Where the escalation stands now, and where it would move on the next sweep."""

    escalation_id: uuid.UUID
    level: int
    level_label: str
    status: EscalationStatus
    recipient_id: uuid.UUID | None
    next_escalation_at: datetime | None
    time_remaining_seconds: int | None
    would_escalate: bool
    projected_level: int
    projected_status: EscalationStatus
    projected_recipient_id: uuid.UUID | None
    reason: str | None


class EscalationResolve(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class EscalationRuleCreate(BaseModel):
    escalation_level: int = Field(..., ge=0, le=4)
    delay_hours: int = Field(..., gt=0)
    recipient_role: str | None = Field(None, max_length=50)
    notification_channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.IN_APP]
    )
    message_template: str | None = None
    sort_order: int = 0
    is_active: bool = True


class EscalationRuleUpdate(BaseModel):
    delay_hours: int | None = Field(None, gt=0)
    recipient_role: str | None = Field(None, max_length=50)
    notification_channels: list[NotificationChannel] | None = None
    message_template: str | None = None
    sort_order: int | None = None
    is_active: bool | None = None


class EscalationRuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID | None
    escalation_level: int
    delay_hours: int
    recipient_role: str | None
    notification_channels: list[NotificationChannel]
    message_template: str | None
    sort_order: int
    is_active: bool


class HierarchyUpsert(BaseModel):
    employee_id: uuid.UUID
    supervisor_id: uuid.UUID | None = None
    manager_id: uuid.UUID | None = None
    director_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None


class HierarchyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    supervisor_id: uuid.UUID | None
    manager_id: uuid.UUID | None
    director_id: uuid.UUID | None
    department_id: uuid.UUID | None
