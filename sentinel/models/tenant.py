"""Tenant model."""

import uuid

from sqlalchemy import Boolean, Column, String, Uuid

from sentinel.database import Base
from sentinel.models.mixins import TimestampMixin


class Tenant(Base, TimestampMixin):
    """An organization using the service; every business row belongs to one."""

    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
