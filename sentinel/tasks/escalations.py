"""Celery tasks for the escalation ladder."""

import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sentinel.celery_app import app as celery_app
from sentinel.config import get_settings
from sentinel.database import SessionLocal
from sentinel.exceptions import SentinelError, TemplateFieldMissing
from sentinel.models import (
    EscalationLog,
    EscalationRule,
    InAppNotification,
    MessageTemplate,
    User,
)
from sentinel.models.enums import (
    EscalationStatus,
    InAppNotificationType,
    NotificationChannel,
    TemplateType,
    WorkflowStatus,
)
from sentinel.services.clock import Clock, FixedClock
from sentinel.services.escalation import (
    MANAGER_LEVEL,
    EscalationOutcome,
    apply_outcome,
    compute_level,
    load_escalation_rules,
    load_holders,
)
from sentinel.services.notification_service import MessagingService, get_messaging_service
from sentinel.services.templates import (
    DEFAULT_ESCALATION_TEMPLATE,
    TemplateSpec,
    item_context,
    render_spec,
    resolve_spec,
)
from sentinel.services.workflow import escalate_by_ladder, record_transition

logger = logging.getLogger(__name__)


def user_address(user: User, channel: NotificationChannel) -> str | None:
    if channel == NotificationChannel.WHATSAPP:
        return user.phone
    if channel == NotificationChannel.TELEGRAM:
        return user.telegram_chat_id
    if channel == NotificationChannel.EMAIL:
        return user.email
    return None


def _escalation_message(
    log: EscalationLog,
    outcome: EscalationOutcome,
    channel: NotificationChannel,
    templates: list[MessageTemplate],
    previous: User | None,
    errors: list[dict],
) -> str:
    if outcome.rule is not None and outcome.rule.message_template:
        spec = TemplateSpec(text=outcome.rule.message_template)
    else:
        spec = resolve_spec(templates, channel, TemplateType.ESCALATION, outcome.level)

    context = item_context(log.item)
    context.update(
        {
            "level": outcome.level,
            "level_label": outcome.level_label,
            "previous_recipient": (previous.name or previous.email) if previous else None,
        }
    )
    try:
        return render_spec(spec, context)
    except TemplateFieldMissing as e:
        logger.warning(
            f"Escalation template for item {log.item_id} incomplete, using default: {e}",
            extra={"kind": e.kind, "item_id": str(log.item_id)},
        )
        errors.append({"item_id": str(log.item_id), **e.to_dict()})
        return render_spec(DEFAULT_ESCALATION_TEMPLATE, context)


def notify_escalation(
    db: Session,
    log: EscalationLog,
    outcome: EscalationOutcome,
    messaging: MessagingService,
    templates: list[MessageTemplate],
    errors: list[dict],
) -> int:
    """Tell the new level's holder about the escalation; returns external messages sent."""
    recipient = db.get(User, outcome.recipient_id)
    if recipient is None:
        return 0
    previous = db.get(User, outcome.previous_recipient_id) if outcome.previous_recipient_id else None

    channels = []
    for value in (outcome.rule.notification_channels if outcome.rule else None) or []:
        channel = NotificationChannel(value)
        if channel not in channels:
            channels.append(channel)
    if NotificationChannel.IN_APP not in channels:
        channels.append(NotificationChannel.IN_APP)

    sent = 0
    for channel in channels:
        message = _escalation_message(log, outcome, channel, templates, previous, errors)
        if channel == NotificationChannel.IN_APP:
            db.add(
                InAppNotification(
                    tenant_id=log.tenant_id,
                    user_id=recipient.id,
                    item_id=log.item_id,
                    escalation_id=log.id,
                    notification_type=InAppNotificationType.ESCALATION,
                    title=f"Escalation: {log.item.title}",
                    message=message,
                    priority="critical" if outcome.level >= MANAGER_LEVEL else "high",
                    action_url=f"/items/{log.item_id}",
                )
            )
            continue

        address = user_address(recipient, channel)
        if not address:
            logger.info(f"User {recipient.id} has no {channel.value} address, skipping")
            continue
        result = messaging.send(channel, address, message)
        if result.success:
            sent += 1
        else:
            logger.warning(
                f"Escalation {log.id} {channel.value} delivery failed: {result.error}",
                extra={"escalation_id": str(log.id)},
            )
    return sent


def _close_for_finished_item(log: EscalationLog, now: datetime) -> None:
    log.status = EscalationStatus.RESOLVED
    log.resolved_at = now
    log.next_escalation_at = None
    log.resolution_notes = "Item closed before acknowledgement"


def run_escalation_sweep(
    db: Session,
    clock: Clock,
    messaging: MessagingService,
    batch_size: int = 100,
) -> dict:
    """Advance every active escalation whose deadline has passed.

    A failure on one log is rolled back and reported; the rest still run.
    """
    now = clock.now()
    stats = {"processed": 0, "escalated": 0, "expired": 0, "closed": 0, "messages_sent": 0}
    errors: list[dict] = []

    logs = (
        db.query(EscalationLog)
        .filter(
            EscalationLog.status.in_([EscalationStatus.PENDING, EscalationStatus.ESCALATED]),
            EscalationLog.next_escalation_at.isnot(None),
            EscalationLog.next_escalation_at <= now,
        )
        .order_by(EscalationLog.next_escalation_at)
        .limit(batch_size)
        .all()
    )

    rules_by_tenant: dict[uuid.UUID, list[EscalationRule]] = {}
    templates_by_tenant: dict[uuid.UUID, list[MessageTemplate]] = {}

    for log in logs:
        item = log.item
        try:
            if item is None or item.is_deleted or item.workflow_status == WorkflowStatus.FINISHED:
                _close_for_finished_item(log, now)
                db.commit()
                stats["closed"] += 1
                continue

            if log.tenant_id not in rules_by_tenant:
                rules_by_tenant[log.tenant_id] = load_escalation_rules(db, log.tenant_id)
                templates_by_tenant[log.tenant_id] = (
                    db.query(MessageTemplate).filter(MessageTemplate.tenant_id == log.tenant_id).all()
                )

            outcome = compute_level(log, rules_by_tenant[log.tenant_id], now, load_holders(db, log))
            stats["processed"] += 1
            if not outcome.changed:
                continue

            apply_outcome(log, outcome, now)
            if outcome.escalated:
                stats["escalated"] += 1
                stats["messages_sent"] += notify_escalation(
                    db, log, outcome, messaging, templates_by_tenant[log.tenant_id], errors
                )
                if outcome.level >= MANAGER_LEVEL:
                    result = escalate_by_ladder(item)
                    if result is not None:
                        record_transition(db, item, result, channel="system", now=now)
                logger.info(
                    f"Escalated item {item.id} to level {outcome.level} ({outcome.level_label})",
                    extra={"escalation_id": str(log.id), "item_id": str(item.id)},
                )
            else:
                stats["expired"] += 1
                logger.warning(
                    f"Escalation {log.id} expired: {outcome.reason}",
                    extra={"escalation_id": str(log.id), "item_id": str(item.id)},
                )
            db.commit()

        except (SentinelError, SQLAlchemyError) as e:
            db.rollback()
            kind = getattr(e, "kind", "database_error")
            logger.error(
                f"Escalation {log.id} failed: {e}",
                extra={"kind": kind, "escalation_id": str(log.id)},
            )
            errors.append({"item_id": str(log.item_id), "kind": kind, "message": str(e)})

    logger.info(f"Escalation sweep complete: {stats}, {len(errors)} errors")
    return {**stats, "errors": errors}


@celery_app.task
def process_escalations(now: str | None = None) -> dict:
    """Run the escalation sweep.

    Runs hourly via celery-beat. ``now`` (ISO 8601) replays the sweep at a
    fixed instant.

    Returns:
        dict with processing statistics and per-item errors
    """
    settings = get_settings()
    db: Session = SessionLocal()
    clock = FixedClock(datetime.fromisoformat(now), settings.timezone) if now else Clock(settings.timezone)

    try:
        return run_escalation_sweep(db, clock, get_messaging_service(settings), settings.escalation_batch_size)

    except Exception as e:
        logger.error(f"Error processing escalations: {e}", exc_info=True)
        db.rollback()
        return {"error": str(e)}

    finally:
        db.close()
