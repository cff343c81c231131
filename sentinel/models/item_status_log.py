"""Item status log model for the workflow timeline."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.enums import WorkflowStatus

_status_enum = Enum(
    WorkflowStatus,
    name="workflowstatus",
    values_callable=lambda x: [e.value for e in x],
)


class ItemStatusLog(Base):
    """One row per workflow transition of an item."""

    __tablename__ = "item_status_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id = Column(Uuid, ForeignKey("items.id"), nullable=False, index=True)
    old_status = Column(_status_enum, nullable=True)
    new_status = Column(_status_enum, nullable=False)
    reason = Column(Text, nullable=True)
    channel = Column(String(20), default="web", nullable=False)  # web, system
    changed_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)  # None = system
    changed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    item = relationship("Item", back_populates="status_logs")
    changed_by = relationship("User")
