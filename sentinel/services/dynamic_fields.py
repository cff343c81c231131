"""Schema registry for an item's dynamic fields."""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from sentinel.exceptions import DynamicFieldInvalid
from sentinel.models.dynamic_field import DynamicFieldDefinition
from sentinel.models.enums import FieldType


def applicable_definitions(
    definitions: Iterable[DynamicFieldDefinition], department_id=None, category_id=None
) -> list[DynamicFieldDefinition]:
    """Definitions that apply to an item in the given department and category.

    A definition applies when each scope it sets matches the item; global
    definitions (no department, no category) always apply.
    """
    matched = [
        d
        for d in definitions
        if (d.department_id is None or d.department_id == department_id)
        and (d.category_id is None or d.category_id == category_id)
    ]
    return sorted(matched, key=lambda d: (d.sort_order or 0, d.field_key))


def _normalize(definition: DynamicFieldDefinition, raw: Any) -> str:
    field_type = FieldType(definition.field_type or FieldType.TEXT)
    value = str(raw).strip()
    if field_type == FieldType.NUMBER:
        try:
            Decimal(value)
        except InvalidOperation as e:
            raise ValueError("must be a number") from e
    elif field_type == FieldType.DATE:
        try:
            value = date.fromisoformat(value).isoformat()
        except ValueError as e:
            raise ValueError("must be a date (YYYY-MM-DD)") from e
    elif field_type == FieldType.SELECT:
        options = [str(o) for o in (definition.field_options or [])]
        if value not in options:
            raise ValueError(f"must be one of: {', '.join(options)}")
    return value


def validate_dynamic_fields(
    values: Mapping[str, Any] | None, definitions: Iterable[DynamicFieldDefinition]
) -> dict[str, str]:
    """Validate values against the applicable definitions; returns normalized strings.

    Collects every problem before raising DynamicFieldInvalid.
    """
    values = dict(values or {})
    by_key = {d.field_key: d for d in definitions}
    errors: dict[str, str] = {}
    cleaned: dict[str, str] = {}

    for key in values:
        if key not in by_key:
            errors[key] = "unknown field"

    for key, definition in by_key.items():
        raw = values.get(key)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if definition.is_required:
                errors[key] = "is required"
            continue
        try:
            cleaned[key] = _normalize(definition, raw)
        except ValueError as e:
            errors[key] = str(e)

    if errors:
        raise DynamicFieldInvalid(errors)
    return cleaned
