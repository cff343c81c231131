"""Dynamic field definition schemas."""

import re
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sentinel.models.enums import FieldType

_KEY_RE = re.compile(r"^[a-z][a-z0-9_]*$")


class DynamicFieldCreate(BaseModel):
    department_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    field_key: str = Field(..., min_length=1, max_length=100)
    field_label: str = Field(..., min_length=1, max_length=255)
    field_type: FieldType = FieldType.TEXT
    field_options: list[str] | None = None
    is_required: bool = False
    sort_order: int = 0

    @field_validator("field_key")
    @classmethod
    def check_key(cls, v: str) -> str:
        if not _KEY_RE.match(v):
            raise ValueError("field_key must be lowercase letters, digits and underscores")
        return v

    @model_validator(mode="after")
    def options_for_select(self) -> "DynamicFieldCreate":
        if self.field_type == FieldType.SELECT and not self.field_options:
            raise ValueError("select fields need field_options")
        return self


class DynamicFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    department_id: uuid.UUID | None
    category_id: uuid.UUID | None
    field_key: str
    field_label: str
    field_type: FieldType
    field_options: list[str] | None
    is_required: bool
    sort_order: int
