"""Recipient model and item association table."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import relationship

from sentinel.database import Base
from sentinel.models.mixins import TenantMixin, TimestampMixin

item_recipients = Table(
    "item_recipients",
    Base.metadata,
    Column("item_id", Uuid, ForeignKey("items.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "recipient_id", Uuid, ForeignKey("recipients.id", ondelete="CASCADE"), primary_key=True
    ),
)


class Recipient(Base, TimestampMixin, TenantMixin):
    """A person or external contact eligible to receive notifications about items."""

    __tablename__ = "recipients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    whatsapp_number = Column(String(32), nullable=True)
    telegram_chat_id = Column(String(64), nullable=True)
    # Set when the recipient is also a user of the app (enables in-app delivery)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    allow_whatsapp = Column(Boolean, default=True, nullable=False)
    allow_telegram = Column(Boolean, default=True, nullable=False)
    allow_email = Column(Boolean, default=True, nullable=False)
    allow_in_app = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User")
    items = relationship("Item", secondary=item_recipients, back_populates="recipients")
