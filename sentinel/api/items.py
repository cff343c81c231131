"""Item API endpoints: CRUD, workflow actions, timeline and reminder preview."""

import uuid
from datetime import date, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from sentinel.api.dependencies import (
    CurrentActor,
    SupervisorActor,
    get_clock,
    get_tenant_object,
)
from sentinel.database import get_db
from sentinel.exceptions import ConcurrentModification, PermissionDenied
from sentinel.models import (
    Category,
    Department,
    DynamicFieldDefinition,
    Item,
    ItemStatusLog,
    MessageTemplate,
    NotificationLog,
    Recipient,
    ReminderRule,
    User,
)
from sentinel.models.enums import WorkflowStatus
from sentinel.schemas.item import (
    AvailableAction,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
    ReminderPreview,
    ReminderPreviewResponse,
    StatusLogResponse,
    WorkflowActionRequest,
)
from sentinel.schemas.notification import DeliveryLogResponse
from sentinel.services.clock import ActorContext, Clock
from sentinel.services.dispatch import days_left, due_reminders, is_due
from sentinel.services.dynamic_fields import applicable_definitions, validate_dynamic_fields
from sentinel.services.workflow import CompletionProof, apply_transition, available_actions

router = APIRouter(prefix="/api/v1/items", tags=["items"])


def get_item(db: Session, item_id: uuid.UUID, actor: ActorContext) -> Item:
    """Get a live item of the actor's organization."""
    return get_tenant_object(db, Item, item_id, actor, "Item")


def _clean_dynamic_fields(
    db: Session, actor: ActorContext, values: dict | None, department_id, category_id
) -> dict[str, str]:
    definitions = (
        db.query(DynamicFieldDefinition)
        .filter(DynamicFieldDefinition.tenant_id == actor.tenant_id)
        .all()
    )
    return validate_dynamic_fields(
        values, applicable_definitions(definitions, department_id, category_id)
    )


def _load_recipients(db: Session, actor: ActorContext, recipient_ids: list[uuid.UUID]):
    return [get_tenant_object(db, Recipient, rid, actor, "Recipient") for rid in dict.fromkeys(recipient_ids)]


def _check_references(db: Session, actor: ActorContext, data: dict) -> None:
    references = {
        "department_id": (Department, "Department"),
        "category_id": (Category, "Category"),
        "reminder_rule_id": (ReminderRule, "Reminder rule"),
        "responsible_user_id": (User, "User"),
    }
    for field, (model, label) in references.items():
        if data.get(field) is not None:
            get_tenant_object(db, model, data[field], actor, label)


def _may_edit(item: Item, actor: ActorContext) -> bool:
    return actor.is_supervisor_or_above or item.created_by_id == actor.user_id


@router.get("", response_model=list[ItemResponse])
def get_items(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    workflow_status: WorkflowStatus | None = None,
    department_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    responsible_user_id: uuid.UUID | None = None,
    mine: bool = Query(default=False, description="Only items the caller is responsible for"),
    expiring_within_days: int | None = Query(default=None, ge=0),
    q: str | None = Query(default=None, max_length=200, description="Search title or reference"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    """List items of the organization, soonest expiry first."""
    query = db.query(Item).filter(Item.tenant_id == actor.tenant_id, Item.deleted_at.is_(None))

    if workflow_status is not None:
        query = query.filter(Item.workflow_status == workflow_status)
    if department_id is not None:
        query = query.filter(Item.department_id == department_id)
    if category_id is not None:
        query = query.filter(Item.category_id == category_id)
    if responsible_user_id is not None:
        query = query.filter(Item.responsible_user_id == responsible_user_id)
    if mine:
        query = query.filter(Item.responsible_user_id == actor.user_id)
    if expiring_within_days is not None:
        query = query.filter(Item.expiry_date <= clock.today() + timedelta(days=expiring_within_days))
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(Item.title.ilike(pattern), Item.ref_number.ilike(pattern)))

    return query.order_by(Item.expiry_date, Item.title).offset(offset).limit(limit).all()


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    item_data: ItemCreate,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create an item; the category's reminder rule applies when none is given."""
    data = item_data.model_dump(exclude={"recipient_ids", "dynamic_fields"})
    _check_references(db, actor, data)

    if data["reminder_rule_id"] is None and data["category_id"] is not None:
        data["reminder_rule_id"] = db.get(Category, data["category_id"]).reminder_rule_id

    dynamic_fields = _clean_dynamic_fields(
        db, actor, item_data.dynamic_fields, data["department_id"], data["category_id"]
    )
    recipients = _load_recipients(db, actor, item_data.recipient_ids)

    item = Item(
        tenant_id=actor.tenant_id,
        created_by_id=actor.user_id,
        workflow_status=WorkflowStatus.NEW,
        dynamic_fields=dynamic_fields,
        **data,
    )
    item.recipients = recipients
    db.add(item)
    db.flush()
    db.add(
        ItemStatusLog(
            item_id=item.id,
            old_status=None,
            new_status=WorkflowStatus.NEW,
            reason="Created",
            changed_by_id=actor.user_id,
        )
    )
    db.commit()
    db.refresh(item)
    return item


@router.get("/stats")
def get_item_stats(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Counts by workflow status plus expired and expiring-within-30-days totals."""
    base = db.query(Item).filter(Item.tenant_id == actor.tenant_id, Item.deleted_at.is_(None))
    rows = (
        base.with_entities(Item.workflow_status, func.count(Item.id))
        .group_by(Item.workflow_status)
        .all()
    )
    by_status = {s.value: 0 for s in WorkflowStatus}
    for workflow_status, count in rows:
        by_status[WorkflowStatus(workflow_status).value] = count

    today = clock.today()
    open_items = base.filter(Item.workflow_status != WorkflowStatus.FINISHED)
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "expired": open_items.filter(Item.expiry_date < today).count(),
        "expiring_30_days": open_items.filter(
            Item.expiry_date >= today, Item.expiry_date <= today + timedelta(days=30)
        ).count(),
    }


@router.get("/{item_id}", response_model=ItemResponse)
def get_item_detail(
    item_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get an item."""
    return get_item(db, item_id, actor)


@router.patch("/{item_id}", response_model=ItemResponse)
def update_item(
    item_id: uuid.UUID,
    item_data: ItemUpdate,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Update an item's details."""
    item = get_item(db, item_id, actor)
    if not _may_edit(item, actor):
        raise PermissionDenied()

    if item_data.expected_version is not None and item.version != item_data.expected_version:
        raise ConcurrentModification(expected=item_data.expected_version, actual=item.version)

    update_data = item_data.model_dump(
        exclude_unset=True, exclude={"expected_version", "recipient_ids", "dynamic_fields"}
    )
    _check_references(db, actor, update_data)

    department_id = update_data.get("department_id", item.department_id)
    category_id = update_data.get("category_id", item.category_id)
    if item_data.dynamic_fields is not None or "department_id" in update_data or "category_id" in update_data:
        values = item_data.dynamic_fields if item_data.dynamic_fields is not None else item.dynamic_fields
        item.dynamic_fields = _clean_dynamic_fields(db, actor, values, department_id, category_id)

    if item_data.recipient_ids is not None:
        item.recipients = _load_recipients(db, actor, item_data.recipient_ids)

    for field, value in update_data.items():
        setattr(item, field, value)

    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConcurrentModification() from e
    db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: uuid.UUID,
    actor: SupervisorActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Soft delete an item."""
    item = get_item(db, item_id, actor)
    item.soft_delete()
    db.commit()


@router.get("/{item_id}/actions", response_model=list[AvailableAction])
def get_available_actions(
    item_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Workflow actions the caller may take on the item now."""
    return available_actions(get_item(db, item_id, actor), actor)


@router.post("/{item_id}/workflow", response_model=ItemResponse)
def perform_workflow_action(
    item_id: uuid.UUID,
    request: WorkflowActionRequest,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Move the item along its workflow."""
    item = get_item(db, item_id, actor)
    apply_transition(
        db,
        item,
        request.action or request.target_status,
        actor,
        clock.now(),
        reason=request.reason,
        proof=CompletionProof(
            description=request.completion_description,
            attachment_url=request.completion_attachment_url,
        ),
        expected_version=request.expected_version,
    )
    return item


@router.get("/{item_id}/timeline", response_model=list[StatusLogResponse])
def get_timeline(
    item_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Status history of the item, newest first."""
    item = get_item(db, item_id, actor)
    return (
        db.query(ItemStatusLog)
        .filter(ItemStatusLog.item_id == item.id)
        .order_by(ItemStatusLog.changed_at.desc())
        .all()
    )


@router.get("/{item_id}/deliveries", response_model=list[DeliveryLogResponse])
def get_deliveries(
    item_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Reminder deliveries recorded for the item, newest first."""
    item = get_item(db, item_id, actor)
    return (
        db.query(NotificationLog)
        .filter(NotificationLog.item_id == item.id)
        .order_by(NotificationLog.sent_on.desc(), NotificationLog.created_at.desc())
        .all()
    )


@router.get("/{item_id}/reminder-preview", response_model=ReminderPreviewResponse)
def preview_reminders(
    item_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    on: date | None = Query(default=None, description="Business date to preview (default today)"),
):
    """Reminders the daily pass would send for the item on a given day."""
    item = get_item(db, item_id, actor)
    day = on or clock.today()
    templates = db.query(MessageTemplate).filter(MessageTemplate.tenant_id == actor.tenant_id).all()
    reminders = due_reminders(item, item.reminder_rule, day, templates)
    return ReminderPreviewResponse(
        date=day,
        days_left=days_left(item.expiry_date, day),
        is_due=is_due(item, item.reminder_rule, day),
        reminders=[
            ReminderPreview(
                recipient_id=r.recipient_id,
                recipient_name=r.recipient_name,
                channel=r.channel,
                address=r.address,
                days_left=r.days_left,
                message=r.message,
            )
            for r in reminders
        ],
    )
