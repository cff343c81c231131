"""Dynamic field definition model (schema registry for Item.dynamic_fields)."""

import uuid

from sqlalchemy import JSON, Boolean, Column, Enum, ForeignKey, Integer, String, Uuid

from sentinel.database import Base
from sentinel.models.enums import FieldType
from sentinel.models.mixins import TenantMixin, TimestampMixin


class DynamicFieldDefinition(Base, TimestampMixin, TenantMixin):
    """Declares one custom field, scoped to a department and/or category (or global)."""

    __tablename__ = "dynamic_field_definitions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    department_id = Column(Uuid, ForeignKey("departments.id"), nullable=True, index=True)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=True, index=True)
    field_key = Column(String(100), nullable=False)
    field_label = Column(String(255), nullable=False)
    field_type = Column(
        Enum(FieldType, name="fieldtype", values_callable=lambda x: [e.value for e in x]),
        default=FieldType.TEXT,
        nullable=False,
    )
    field_options = Column(JSON, nullable=True)  # choices for select fields
    is_required = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
