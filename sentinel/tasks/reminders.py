"""Celery tasks for daily reminder dispatch."""

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sentinel.celery_app import app as celery_app
from sentinel.config import get_settings
from sentinel.database import SessionLocal
from sentinel.models import (
    EscalationLog,
    InAppNotification,
    Item,
    MessageTemplate,
    NotificationLog,
    ReminderRule,
)
from sentinel.models.enums import (
    DeliveryStatus,
    EscalationStatus,
    InAppNotificationType,
    NotificationChannel,
    WorkflowStatus,
)
from sentinel.services.clock import Clock, FixedClock
from sentinel.services.dispatch import DueReminder, plan_dispatch
from sentinel.services.escalation import load_escalation_rules, start_escalation
from sentinel.services.notification_service import (
    DeliveryResult,
    MessagingService,
    get_messaging_service,
)

logger = logging.getLogger(__name__)


def load_dispatchable_items(db: Session) -> list[Item]:
    """Live items whose reminder rule is active."""
    return (
        db.query(Item)
        .join(ReminderRule, Item.reminder_rule_id == ReminderRule.id)
        .filter(
            Item.deleted_at.is_(None),
            Item.workflow_status != WorkflowStatus.FINISHED,
            ReminderRule.is_active.is_(True),
        )
        .order_by(Item.expiry_date, Item.id)
        .all()
    )


def _find_log(db: Session, reminder: DueReminder, today: date) -> NotificationLog | None:
    return (
        db.query(NotificationLog)
        .filter(
            NotificationLog.item_id == reminder.item_id,
            NotificationLog.recipient_id == reminder.recipient_id,
            NotificationLog.channel == reminder.channel,
            NotificationLog.reminder_day == reminder.days_left,
            NotificationLog.sent_on == today,
        )
        .first()
    )


def _deliver(
    db: Session, item: Item, reminder: DueReminder, messaging: MessagingService
) -> DeliveryResult:
    if reminder.channel != NotificationChannel.IN_APP:
        return messaging.send(reminder.channel, reminder.address, reminder.message)

    notification = InAppNotification(
        tenant_id=item.tenant_id,
        user_id=uuid.UUID(reminder.address),
        item_id=item.id,
        notification_type=InAppNotificationType.REMINDER,
        title=f"Reminder: {item.title}",
        message=reminder.message,
        priority="high" if reminder.days_left <= 1 else "normal",
        action_url=f"/items/{item.id}",
    )
    db.add(notification)
    return DeliveryResult(success=True)


def _open_escalation(db: Session, item: Item, now: datetime) -> bool:
    if item.responsible_user_id is None:
        return False
    existing = (
        db.query(EscalationLog)
        .filter(EscalationLog.item_id == item.id)
        .order_by(EscalationLog.created_at.desc())
        .first()
    )
    was_active = existing is not None and EscalationStatus(existing.status).is_active
    rules = load_escalation_rules(db, item.tenant_id)
    log = start_escalation(item, item.responsible_user_id, rules, now, existing)
    if log is None or was_active:
        return False
    db.add(log)
    return True


def run_reminder_dispatch(db: Session, clock: Clock, messaging: MessagingService) -> dict:
    """Send every reminder due today, once.

    Deliveries already recorded as sent for the same item, recipient, channel,
    threshold and day are skipped, so re-running a pass is harmless.
    """
    today = clock.today()
    now = clock.now()
    stats = {"items": 0, "due": 0, "sent": 0, "failed": 0, "skipped": 0, "escalations_started": 0}
    errors: list[dict] = []

    items = load_dispatchable_items(db)
    stats["items"] = len(items)

    by_tenant: dict[uuid.UUID, list[Item]] = defaultdict(list)
    for item in items:
        by_tenant[item.tenant_id].append(item)

    for tenant_id, tenant_items in by_tenant.items():
        templates = db.query(MessageTemplate).filter(MessageTemplate.tenant_id == tenant_id).all()
        plan = plan_dispatch(tenant_items, today, templates)
        errors.extend(plan.errors)
        stats["due"] += len(plan.reminders)

        reminders_by_item: dict[uuid.UUID, list[DueReminder]] = defaultdict(list)
        for reminder in plan.reminders:
            reminders_by_item[reminder.item_id].append(reminder)

        for item in tenant_items:
            due = reminders_by_item.get(item.id)
            if not due:
                continue
            try:
                delivered = 0
                for reminder in due:
                    log = _find_log(db, reminder, today)
                    if log is not None and log.status == DeliveryStatus.SENT:
                        stats["skipped"] += 1
                        continue
                    if log is None:
                        log = NotificationLog(
                            tenant_id=item.tenant_id,
                            item_id=item.id,
                            recipient_id=reminder.recipient_id,
                            channel=reminder.channel,
                            reminder_day=reminder.days_left,
                            sent_on=today,
                            attempts=0,
                        )
                        db.add(log)

                    result = _deliver(db, item, reminder, messaging)
                    log.message = reminder.message
                    log.attempts = (log.attempts or 0) + 1
                    log.provider_message_id = result.provider_message_id
                    if result.success:
                        log.status = DeliveryStatus.SENT
                        log.sent_at = now
                        log.error_message = None
                        stats["sent"] += 1
                        delivered += 1
                    else:
                        log.status = DeliveryStatus.FAILED
                        log.error_message = result.error
                        stats["failed"] += 1

                if delivered and _open_escalation(db, item, now):
                    stats["escalations_started"] += 1
                db.commit()

            except SQLAlchemyError as e:
                db.rollback()
                logger.error(
                    f"Reminder dispatch failed for item {item.id}: {e}",
                    extra={"kind": "database_error", "item_id": str(item.id)},
                )
                errors.append({"item_id": str(item.id), "kind": "database_error", "message": str(e)})

    logger.info(f"Reminder dispatch for {today.isoformat()} complete: {stats}, {len(errors)} errors")
    return {**stats, "date": today.isoformat(), "errors": errors}


@celery_app.task
def dispatch_reminders(today: str | None = None) -> dict:
    """Run the daily reminder pass.

    Runs once a day via celery-beat. ``today`` (ISO date) replays the pass for
    a given business date.

    Returns:
        dict with dispatch statistics and per-item errors
    """
    settings = get_settings()
    db: Session = SessionLocal()
    if today:
        at = datetime.combine(date.fromisoformat(today), datetime.min.time().replace(hour=12))
        clock = FixedClock(at, settings.timezone)
    else:
        clock = Clock(settings.timezone)

    try:
        return run_reminder_dispatch(db, clock, get_messaging_service(settings))

    except Exception as e:
        logger.error(f"Error dispatching reminders: {e}", exc_info=True)
        db.rollback()
        return {"error": str(e)}

    finally:
        db.close()
