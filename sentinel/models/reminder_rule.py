"""Reminder rule model."""

import uuid

from sqlalchemy import JSON, Boolean, Column, String, Uuid

from sentinel.database import Base
from sentinel.models.mixins import TenantMixin, TimestampMixin


class ReminderRule(Base, TimestampMixin, TenantMixin):
    """Days-before-expiry thresholds and the channels reminders go out on."""

    __tablename__ = "reminder_rules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    days_before = Column(JSON, nullable=False, default=lambda: [30, 14, 7, 3, 1, 0])
    channels = Column(JSON, nullable=False, default=lambda: ["telegram", "whatsapp"])
    target_entity_type = Column(String(50), default="item", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
