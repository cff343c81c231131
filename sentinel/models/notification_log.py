"""Notification log model for reminder deliveries."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    Date,
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
from sentinel.models.enums import DeliveryStatus, NotificationChannel
from sentinel.models.mixins import TenantMixin


class NotificationLog(Base, TenantMixin):
    """One delivery attempt of a reminder to a recipient over a channel.

    The unique key makes a dispatch pass idempotent per business day and threshold.
    """

    __tablename__ = "notification_log"
    __table_args__ = (
        UniqueConstraint(
            "item_id",
            "recipient_id",
            "channel",
            "reminder_day",
            "sent_on",
            name="uq_notification_log_delivery",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id = Column(Uuid, ForeignKey("items.id"), nullable=False, index=True)
    recipient_id = Column(Uuid, ForeignKey("recipients.id"), nullable=False, index=True)
    channel = Column(
        Enum(
            NotificationChannel,
            name="notificationchannel",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    reminder_day = Column(Integer, nullable=False)  # days_left that triggered it
    sent_on = Column(Date, nullable=False, index=True)  # business date of the pass
    status = Column(
        Enum(
            DeliveryStatus,
            name="deliverystatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DeliveryStatus.PENDING,
        nullable=False,
    )
    message = Column(Text, nullable=True)
    provider_message_id = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    attempts = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    item = relationship("Item")
    recipient = relationship("Recipient")
