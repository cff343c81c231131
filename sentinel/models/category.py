"""Category model."""

import uuid

from sqlalchemy import Column, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.mixins import TenantMixin, TimestampMixin


class Category(Base, TimestampMixin, TenantMixin):
    """Kind of tracked document (license, contract, residency permit...)."""

    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    # Default reminder rule for new items in this category
    reminder_rule_id = Column(Uuid, ForeignKey("reminder_rules.id"), nullable=True)

    # Relationships
    items = relationship("Item", back_populates="category")
    reminder_rule = relationship("ReminderRule")
