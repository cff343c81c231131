"""Department model."""

import uuid

from sqlalchemy import Column, String, Uuid

from sentinel.database import Base
from sentinel.models.mixins import TenantMixin, TimestampMixin


class Department(Base, TimestampMixin, TenantMixin):
    """Organizational unit that owns items."""

    __tablename__ = "departments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
