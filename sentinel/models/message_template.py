"""Message template model."""

import uuid

from sqlalchemy import JSON, Boolean, Column, Enum, Integer, String, Text, Uuid

from sentinel.database import Base
from sentinel.models.enums import TemplateChannel, TemplateType
from sentinel.models.mixins import TenantMixin, TimestampMixin


class MessageTemplate(Base, TimestampMixin, TenantMixin):
    """Versioned text template with ``{{placeholder}}`` tokens."""

    __tablename__ = "message_templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    channel = Column(
        Enum(
            TemplateChannel,
            name="templatechannel",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=TemplateChannel.ALL,
        nullable=False,
    )
    template_type = Column(
        Enum(
            TemplateType,
            name="templatetype",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=TemplateType.REMINDER,
        nullable=False,
    )
    escalation_level = Column(Integer, nullable=True)  # only for escalation templates
    template_text = Column(Text, nullable=False)
    required_fields = Column(JSON, nullable=False, default=list)
    optional_fields = Column(JSON, nullable=False, default=list)
    version = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
