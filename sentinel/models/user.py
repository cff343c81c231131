"""User model."""

import uuid

from sqlalchemy import Column, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.enums import Role
from sentinel.models.mixins import TenantMixin, TimestampMixin


class User(Base, TimestampMixin, TenantMixin):
    """User model for authentication, roles and escalation targets."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(
        Enum(Role, name="userrole", values_callable=lambda x: [e.value for e in x]),
        default=Role.EMPLOYEE,
        nullable=False,
    )
    phone = Column(String(32), nullable=True)  # WhatsApp-capable number
    telegram_chat_id = Column(String(64), nullable=True)
    department_id = Column(Uuid, ForeignKey("departments.id"), nullable=True)

    # Relationships
    tenant = relationship("Tenant", backref="users")
    department = relationship("Department", foreign_keys=[department_id])
