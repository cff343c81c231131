"""Reminder dispatch descriptor.

Works out which reminders are due today and renders them. Nothing here talks
to a messaging provider; the dispatch task delivers what this module plans.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from sentinel.exceptions import SentinelError
from sentinel.models.enums import NotificationChannel, WorkflowStatus
from sentinel.models.item import Item
from sentinel.models.recipient import Recipient
from sentinel.models.reminder_rule import ReminderRule
from sentinel.services.templates import item_context, render_spec, resolve_spec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueReminder:
    """One message to deliver: who, over which channel, and what it says."""

    item_id: uuid.UUID
    recipient_id: uuid.UUID
    recipient_name: str
    channel: NotificationChannel
    address: str
    days_left: int
    message: str


@dataclass
class DispatchPlan:
    """Reminders due across many items, plus the items that failed to plan."""

    reminders: list[DueReminder] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


def days_left(expiry_date: date, today: date) -> int:
    """Whole days from ``today`` until expiry (negative once expired)."""
    return (expiry_date - today).days


def is_due(item: Item, rule: ReminderRule | None, today: date) -> bool:
    """True when today's days_left is exactly one of the rule's thresholds.

    Missed days are not back-filled.
    """
    if rule is None or rule.is_active is False:
        return False
    if item.is_deleted or WorkflowStatus(item.workflow_status).is_terminal:
        return False
    thresholds = {int(d) for d in (rule.days_before or [])}
    return days_left(item.expiry_date, today) in thresholds


def channel_address(recipient: Recipient, channel: NotificationChannel) -> str | None:
    """The recipient's address on a channel, or None when the channel is off for them."""
    if channel == NotificationChannel.WHATSAPP and recipient.allow_whatsapp is not False:
        return recipient.whatsapp_number or None
    if channel == NotificationChannel.TELEGRAM and recipient.allow_telegram is not False:
        return recipient.telegram_chat_id or None
    if channel == NotificationChannel.EMAIL and recipient.allow_email is not False:
        return recipient.email or None
    if channel == NotificationChannel.IN_APP and recipient.allow_in_app is not False:
        return str(recipient.user_id) if recipient.user_id else None
    return None


def enabled_channels(recipient: Recipient) -> list[NotificationChannel]:
    return [c for c in NotificationChannel if channel_address(recipient, c)]


def _rule_channels(rule: ReminderRule) -> list[NotificationChannel]:
    channels: list[NotificationChannel] = []
    for value in rule.channels or []:
        channel = NotificationChannel(value)
        if channel not in channels:
            channels.append(channel)
    return channels


def active_recipients(item: Item) -> list[Recipient]:
    """Active recipients in a stable order (name, then id)."""
    recipients = [r for r in item.recipients if r.is_active is not False]
    return sorted(recipients, key=lambda r: ((r.name or "").casefold(), str(r.id)))


def due_reminders(
    item: Item,
    rule: ReminderRule | None,
    today: date,
    templates: Iterable = (),
) -> list[DueReminder]:
    """Reminders owed for one item today.

    One entry per active recipient per channel in ``rule.channels`` that the
    recipient has enabled. Raises TemplateFieldMissing when a required
    placeholder has no value; no partial list is returned.
    """
    if not is_due(item, rule, today):
        return []

    templates = list(templates)
    left = days_left(item.expiry_date, today)
    reminders: list[DueReminder] = []
    for recipient in active_recipients(item):
        for channel in _rule_channels(rule):
            address = channel_address(recipient, channel)
            if not address:
                continue
            spec = resolve_spec(templates, channel)
            message = render_spec(spec, item_context(item, left, recipient))
            reminders.append(
                DueReminder(
                    item_id=item.id,
                    recipient_id=recipient.id,
                    recipient_name=recipient.name,
                    channel=channel,
                    address=address,
                    days_left=left,
                    message=message,
                )
            )
    return reminders


def plan_dispatch(items: Iterable[Item], today: date, templates: Iterable = ()) -> DispatchPlan:
    """Due reminders for many items; one item's failure never stops the rest."""
    templates = list(templates)
    plan = DispatchPlan()
    for item in items:
        try:
            plan.reminders.extend(due_reminders(item, item.reminder_rule, today, templates))
        except SentinelError as e:
            logger.warning(f"Skipping reminders for item {item.id}: {e}", extra={"kind": e.kind})
            plan.errors.append({"item_id": str(item.id), **e.to_dict()})
    return plan
