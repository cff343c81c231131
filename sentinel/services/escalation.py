"""Escalation ladder.

An unacknowledged reminder climbs the organizational ladder one level at a
time: supervisor, department manager, general manager, then HR. Each level's
rule says how long the new recipient has before the next climb.
"""

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from sentinel.exceptions import EscalationRuleGap, InvalidTransition, PermissionDenied
from sentinel.models.enums import EscalationStatus, Role, escalation_level_label
from sentinel.models.escalation import EscalationLog, EscalationRule, OrganizationalHierarchy
from sentinel.models.item import Item
from sentinel.models.user import User
from sentinel.services.clock import ActorContext, as_utc

logger = logging.getLogger(__name__)

# Level at which the item itself is handed to management
MANAGER_LEVEL = 2


@dataclass(frozen=True)
class EscalationOutcome:
    """Where a log stands (or should move to) at a given instant."""

    level: int
    status: EscalationStatus
    recipient_id: uuid.UUID | None
    previous_recipient_id: uuid.UUID | None
    next_escalation_at: datetime | None
    time_remaining: timedelta | None
    escalated: bool = False
    changed: bool = False
    reason: str | None = None
    rule: EscalationRule | None = None

    @property
    def level_label(self) -> str:
        return escalation_level_label(self.level)


def _active_rules(rules: Iterable[EscalationRule]) -> list[EscalationRule]:
    return [r for r in rules if r.is_active is not False]


def select_rule(rules: Iterable[EscalationRule], level: int) -> EscalationRule | None:
    """First active rule for ``level`` by sort_order; tenant rules win ties over global ones."""
    candidates = [r for r in _active_rules(rules) if r.escalation_level == level]
    if not candidates:
        return None
    candidates.sort(key=lambda r: (r.sort_order or 0, 0 if r.tenant_id else 1))
    return candidates[0]


def holders_for(
    hierarchy: OrganizationalHierarchy | None, hr_user_id: uuid.UUID | None = None
) -> dict[int, uuid.UUID | None]:
    """Map each ladder level to the user who holds it for one employee."""
    return {
        1: hierarchy.supervisor_id if hierarchy else None,
        2: hierarchy.manager_id if hierarchy else None,
        3: hierarchy.director_id if hierarchy else None,
        4: hr_user_id,
    }


def _remaining(next_at: datetime | None, now: datetime) -> timedelta | None:
    if next_at is None:
        return None
    return max(next_at - now, timedelta(0))


def compute_level(
    log: EscalationLog,
    rules: Iterable[EscalationRule],
    now: datetime,
    holders: Mapping[int, uuid.UUID | None],
) -> EscalationOutcome:
    """Compute the log's level, recipient and deadline at ``now``.

    Pure: the log is not modified (see ``apply_outcome``), so repeated calls
    with the same arguments return the same outcome.
    """
    now = as_utc(now)
    rules = _active_rules(rules)
    status = EscalationStatus(log.status)
    level = log.escalation_level or 0
    next_at = as_utc(log.next_escalation_at)

    current = EscalationOutcome(
        level=level,
        status=status,
        recipient_id=log.current_recipient_id,
        previous_recipient_id=log.previous_recipient_id,
        next_escalation_at=next_at,
        time_remaining=_remaining(next_at, now) if status.is_active else None,
    )

    # A log that was never scheduled has not started climbing
    if not status.is_active or next_at is None or now < next_at:
        return current

    # Without a level-0 rule the ladder is switched off
    if select_rule(rules, 0) is None:
        return current

    next_level = level + 1
    rule = select_rule(rules, next_level)
    if rule is None:
        gap = EscalationRuleGap(level=next_level)
        return EscalationOutcome(
            level=level,
            status=EscalationStatus.EXPIRED,
            recipient_id=log.current_recipient_id,
            previous_recipient_id=log.previous_recipient_id,
            next_escalation_at=None,
            time_remaining=None,
            changed=True,
            reason=f"{gap.kind}: no escalation rule for level {next_level}",
        )

    recipient_id = holders.get(next_level)
    if recipient_id is None:
        return EscalationOutcome(
            level=level,
            status=EscalationStatus.EXPIRED,
            recipient_id=log.current_recipient_id,
            previous_recipient_id=log.previous_recipient_id,
            next_escalation_at=None,
            time_remaining=None,
            changed=True,
            reason=f"No {escalation_level_label(next_level)} assigned",
            rule=rule,
        )

    next_escalation_at = now + timedelta(hours=rule.delay_hours)
    return EscalationOutcome(
        level=next_level,
        status=EscalationStatus.ESCALATED,
        recipient_id=recipient_id,
        previous_recipient_id=log.current_recipient_id,
        next_escalation_at=next_escalation_at,
        time_remaining=next_escalation_at - now,
        escalated=True,
        changed=True,
        reason=f"Not acknowledged at {escalation_level_label(level)} level",
        rule=rule,
    )


def apply_outcome(log: EscalationLog, outcome: EscalationOutcome, now: datetime) -> None:
    """Write a changed outcome back onto the log."""
    if not outcome.changed:
        return
    if outcome.level < (log.escalation_level or 0):
        raise ValueError("Escalation level cannot decrease")

    log.escalation_level = outcome.level
    log.status = outcome.status
    log.current_recipient_id = outcome.recipient_id
    log.previous_recipient_id = outcome.previous_recipient_id
    log.next_escalation_at = outcome.next_escalation_at
    log.escalation_reason = outcome.reason
    if outcome.escalated:
        log.escalated_at = now


def start_delay_hours(rules: Iterable[EscalationRule]) -> int | None:
    """Hours the original recipient gets before the first climb (the level-0 rule).

    Without a level-0 rule no escalation ever starts.
    """
    rule = select_rule(rules, 0)
    return rule.delay_hours if rule else None


def start_escalation(
    item: Item,
    recipient_user_id: uuid.UUID,
    rules: Iterable[EscalationRule],
    now: datetime,
    existing: EscalationLog | None = None,
) -> EscalationLog | None:
    """Open the item's escalation log when a reminder goes out.

    An active log is left alone; an acknowledged one restarts at level 0 for the
    new reminder cycle; a closed one is superseded by a fresh log. Returns None
    when there is no level-0 rule.
    """
    delay = start_delay_hours(rules)
    if delay is None:
        return None

    now = as_utc(now)
    if existing is not None:
        status = EscalationStatus(existing.status)
        if status.is_active:
            return existing
        if status == EscalationStatus.ACKNOWLEDGED:
            existing.escalation_level = 0
            existing.status = EscalationStatus.PENDING
            existing.original_recipient_id = recipient_user_id
            existing.current_recipient_id = recipient_user_id
            existing.previous_recipient_id = None
            existing.sent_at = now
            existing.next_escalation_at = now + timedelta(hours=delay)
            existing.acknowledged_at = None
            existing.acknowledged_by_id = None
            existing.escalation_reason = None
            logger.info(f"Restarted escalation {existing.id} for item {item.id}")
            return existing

    return EscalationLog(
        tenant_id=item.tenant_id,
        item_id=item.id,
        escalation_level=0,
        status=EscalationStatus.PENDING,
        original_recipient_id=recipient_user_id,
        current_recipient_id=recipient_user_id,
        sent_at=now,
        next_escalation_at=now + timedelta(hours=delay),
    )


def _may_handle(log: EscalationLog, actor: ActorContext) -> bool:
    if log.tenant_id != actor.tenant_id:
        return False
    if actor.is_supervisor_or_above:
        return True
    return actor.user_id in (log.current_recipient_id, log.original_recipient_id)


def acknowledge(log: EscalationLog, actor: ActorContext, now: datetime) -> None:
    """Freeze the ladder at its current level."""
    if not EscalationStatus(log.status).is_active:
        raise InvalidTransition("Only open escalations can be acknowledged.")
    if not _may_handle(log, actor):
        raise PermissionDenied()
    log.status = EscalationStatus.ACKNOWLEDGED
    log.acknowledged_at = now
    log.acknowledged_by_id = actor.user_id


def resolve(log: EscalationLog, actor: ActorContext, now: datetime, notes: str | None = None) -> None:
    """Close the escalation for good."""
    if EscalationStatus(log.status).is_closed:
        raise InvalidTransition("This escalation is already closed.")
    if not _may_handle(log, actor):
        raise PermissionDenied()
    log.status = EscalationStatus.RESOLVED
    log.resolved_at = now
    log.resolution_notes = notes
    log.next_escalation_at = None


def load_escalation_rules(db: Session, tenant_id: uuid.UUID) -> list[EscalationRule]:
    """Active tenant rules plus global ones (``tenant_id`` NULL)."""
    return (
        db.query(EscalationRule)
        .filter(
            or_(EscalationRule.tenant_id == tenant_id, EscalationRule.tenant_id.is_(None)),
            EscalationRule.is_active.is_(True),
        )
        .all()
    )


def load_holders(db: Session, log: EscalationLog) -> dict[int, uuid.UUID | None]:
    """Who holds each ladder level for the employee the log started with."""
    hierarchy = (
        db.query(OrganizationalHierarchy)
        .filter(
            OrganizationalHierarchy.tenant_id == log.tenant_id,
            OrganizationalHierarchy.employee_id == log.original_recipient_id,
        )
        .first()
    )
    hr_user = (
        db.query(User)
        .filter(User.tenant_id == log.tenant_id, User.role == Role.HR_USER)
        .order_by(User.created_at)
        .first()
    )
    return holders_for(hierarchy, hr_user.id if hr_user else None)
