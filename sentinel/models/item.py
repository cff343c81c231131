"""Item model."""

import uuid

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    Uuid,
)
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.enums import WorkflowStatus
from sentinel.models.mixins import SoftDeleteMixin, TenantMixin, TimestampMixin
from sentinel.models.recipient import item_recipients


class Item(Base, TimestampMixin, SoftDeleteMixin, TenantMixin):
    """A trackable document (license, contract...) with an expiry date and workflow status."""

    __tablename__ = "items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(500), nullable=False)
    ref_number = Column(String(100), nullable=True, index=True)
    expiry_date = Column(Date, nullable=False, index=True)
    expiry_time = Column(Time, nullable=True)
    workflow_status = Column(
        Enum(
            WorkflowStatus,
            name="workflowstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=WorkflowStatus.NEW,
        nullable=False,
        index=True,
    )
    department_id = Column(Uuid, ForeignKey("departments.id"), nullable=True, index=True)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=True, index=True)
    responsible_person = Column(String(255), nullable=True)  # display name
    responsible_user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    created_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    reminder_rule_id = Column(Uuid, ForeignKey("reminder_rules.id"), nullable=True)
    notes = Column(Text, nullable=True)
    # {"license_number": "BR-12345", ...}; keys validated against DynamicFieldDefinition
    dynamic_fields = Column(JSON, nullable=True)

    # Completion proof, required when marking the item done
    completion_description = Column(Text, nullable=True)
    completion_attachment_url = Column(String(1000), nullable=True)
    completion_date = Column(DateTime(timezone=True), nullable=True)
    completed_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    department = relationship("Department")
    category = relationship("Category", back_populates="items")
    reminder_rule = relationship("ReminderRule")
    responsible_user = relationship("User", foreign_keys=[responsible_user_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    completed_by = relationship("User", foreign_keys=[completed_by_id])
    recipients = relationship("Recipient", secondary=item_recipients, back_populates="items")
    status_logs = relationship(
        "ItemStatusLog",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemStatusLog.changed_at.desc()",
    )
