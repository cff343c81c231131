"""Message template rendering and selection."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sentinel.exceptions import TemplateFieldMissing
from sentinel.models.enums import NotificationChannel, TemplateChannel, TemplateType

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")

# Placeholders every reminder context provides (dynamic fields come on top)
ITEM_FIELDS = (
    "title",
    "ref_number",
    "expiry_date",
    "expiry_time",
    "days_left",
    "category",
    "department",
    "responsible_person",
    "notes",
    "recipient_name",
)

MISSING_VALUE = "-"

DEFAULT_REMINDER_TEXT = """Reminder: {{title}}

Reference: {{ref_number}}
Expiry date: {{expiry_date}}
Days left: {{days_left}}
Category: {{category}}
Responsible: {{responsible_person}}

Notes: {{notes}}"""

DEFAULT_ESCALATION_TEXT = """Escalation ({{level_label}}): {{title}}

Reference {{ref_number}} expires on {{expiry_date}} and has not been acknowledged
by {{previous_recipient}}. Please review it now."""


@dataclass(frozen=True)
class TemplateSpec:
    """The parts of a template needed to render it."""

    text: str
    required_fields: tuple[str, ...] = ()
    template_id: Any = None
    version: int = 1
    optional_fields: tuple[str, ...] = field(default=())

    @classmethod
    def from_model(cls, template) -> "TemplateSpec":
        return cls(
            text=template.template_text,
            required_fields=tuple(template.required_fields or ()),
            optional_fields=tuple(template.optional_fields or ()),
            template_id=template.id,
            version=template.version or 1,
        )


DEFAULT_REMINDER_TEMPLATE = TemplateSpec(
    text=DEFAULT_REMINDER_TEXT, required_fields=("title", "expiry_date", "days_left")
)
DEFAULT_ESCALATION_TEMPLATE = TemplateSpec(
    text=DEFAULT_ESCALATION_TEXT, required_fields=("title", "level_label")
)


def placeholders(text: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    seen: list[str] = []
    for name in PLACEHOLDER_RE.findall(text or ""):
        if name not in seen:
            seen.append(name)
    return seen


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _format(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def render(text: str, context: Mapping[str, Any], required_fields: Iterable[str] = ()) -> str:
    """Substitute ``{{placeholder}}`` tokens from ``context``.

    Every required field must have a value, whether or not the text uses it;
    otherwise TemplateFieldMissing lists them all and nothing is rendered.
    Optional or unknown placeholders without a value render as "-".
    """
    missing = [name for name in required_fields if not _present(context.get(name))]
    if missing:
        raise TemplateFieldMissing(missing)

    def substitute(match: re.Match) -> str:
        value = context.get(match.group(1))
        return _format(value) if _present(value) else MISSING_VALUE

    return PLACEHOLDER_RE.sub(substitute, text)


def render_spec(spec: TemplateSpec, context: Mapping[str, Any]) -> str:
    return render(spec.text, context, spec.required_fields)


def item_context(item, days_left: int | None = None, recipient=None) -> dict[str, Any]:
    """Placeholder values for an item; dynamic fields never shadow the fixed ones."""
    context: dict[str, Any] = {}
    for key, value in (item.dynamic_fields or {}).items():
        context[str(key)] = value
    context.update(
        {
            "title": item.title,
            "ref_number": item.ref_number,
            "expiry_date": item.expiry_date,
            "expiry_time": item.expiry_time.strftime("%H:%M") if item.expiry_time else None,
            "days_left": days_left,
            "category": item.category.name if item.category else None,
            "department": item.department.name if item.department else None,
            "responsible_person": item.responsible_person,
            "notes": item.notes,
            "recipient_name": recipient.name if recipient is not None else None,
        }
    )
    return context


def select_template(
    templates: Iterable,
    channel: NotificationChannel | str,
    template_type: TemplateType = TemplateType.REMINDER,
    escalation_level: int | None = None,
):
    """Pick the template to use for a channel.

    Among active templates of the type: exact channel beats ``all``, a
    level-specific escalation template beats a generic one, default beats
    non-default, then the highest version. Returns None when nothing matches.
    """
    channel_value = NotificationChannel(channel).value
    candidates = []
    for template in templates:
        if template.is_active is False:
            continue
        kind = TemplateType(template.template_type or TemplateType.REMINDER)
        if kind != TemplateType(template_type):
            continue
        template_channel = TemplateChannel(template.channel or TemplateChannel.ALL).value
        if template_channel not in (channel_value, TemplateChannel.ALL.value):
            continue
        if template.escalation_level is not None and template.escalation_level != escalation_level:
            continue
        candidates.append(template)

    if not candidates:
        return None

    def rank(template):
        return (
            TemplateChannel(template.channel or TemplateChannel.ALL).value == channel_value,
            template.escalation_level is not None,
            bool(template.is_default),
            template.version or 1,
        )

    return max(candidates, key=rank)


def resolve_spec(
    templates: Iterable,
    channel: NotificationChannel | str,
    template_type: TemplateType = TemplateType.REMINDER,
    escalation_level: int | None = None,
) -> TemplateSpec:
    """Selected template as a TemplateSpec, or the built-in default."""
    template = select_template(templates, channel, template_type, escalation_level)
    if template is not None:
        return TemplateSpec.from_model(template)
    if TemplateType(template_type) == TemplateType.ESCALATION:
        return DEFAULT_ESCALATION_TEMPLATE
    return DEFAULT_REMINDER_TEMPLATE
