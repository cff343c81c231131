"""In-app notification model."""

import uuid

from sqlalchemy import Boolean, Column, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.enums import InAppNotificationType
from sentinel.models.mixins import TenantMixin, TimestampMixin


class InAppNotification(Base, TimestampMixin, TenantMixin):
    """Notification shown in the user's bell menu."""

    __tablename__ = "in_app_notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    item_id = Column(Uuid, ForeignKey("items.id"), nullable=True)
    escalation_id = Column(Uuid, ForeignKey("escalation_log.id"), nullable=True)
    notification_type = Column(
        Enum(
            InAppNotificationType,
            name="inappnotificationtype",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(20), default="normal", nullable=False)  # normal, high, critical
    action_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User")
