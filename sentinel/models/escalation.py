"""Escalation models: logs, per-level rules and the organizational hierarchy."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.enums import EscalationStatus
from sentinel.models.mixins import TenantMixin, TimestampMixin


class EscalationLog(Base, TimestampMixin, TenantMixin):
    """Tracks how far an unacknowledged reminder has climbed the escalation ladder.

    One active record per item; the level only goes up while the log is active.
    """

    __tablename__ = "escalation_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id = Column(Uuid, ForeignKey("items.id"), nullable=False, index=True)
    escalation_level = Column(Integer, default=0, nullable=False)  # 0 = original recipient
    status = Column(
        Enum(
            EscalationStatus,
            name="escalationstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=EscalationStatus.PENDING,
        nullable=False,
        index=True,
    )
    original_recipient_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    current_recipient_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    previous_recipient_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    sent_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    next_escalation_at = Column(DateTime(timezone=True), nullable=True, index=True)
    escalated_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    escalation_reason = Column(Text, nullable=True)
    resolution_notes = Column(Text, nullable=True)

    # Relationships
    item = relationship("Item", backref="escalations")
    original_recipient = relationship("User", foreign_keys=[original_recipient_id])
    current_recipient = relationship("User", foreign_keys=[current_recipient_id])


class EscalationRule(Base, TimestampMixin):
    """Per-level escalation delay and channels. ``tenant_id`` None means global."""

    __tablename__ = "escalation_rules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=True, index=True)
    escalation_level = Column(Integer, nullable=False, index=True)
    delay_hours = Column(Integer, nullable=False, default=24)
    recipient_role = Column(String(50), nullable=True)
    notification_channels = Column(JSON, nullable=False, default=lambda: ["in_app"])
    message_template = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class OrganizationalHierarchy(Base, TimestampMixin, TenantMixin):
    """Who an employee's reminders escalate to, level by level."""

    __tablename__ = "organizational_hierarchy"
    __table_args__ = (UniqueConstraint("tenant_id", "employee_id", name="uq_hierarchy_employee"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    supervisor_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    manager_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    director_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    department_id = Column(Uuid, ForeignKey("departments.id"), nullable=True)
