"""Escalation API endpoints: logs, ladder rules and the organizational hierarchy."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from sentinel.api.dependencies import (
    AdminActor,
    CurrentActor,
    SupervisorActor,
    get_clock,
    get_tenant_object,
)
from sentinel.database import get_db
from sentinel.exceptions import PermissionDenied
from sentinel.models import Department, EscalationLog, EscalationRule, OrganizationalHierarchy, User
from sentinel.models.enums import EscalationStatus, Role, escalation_level_label
from sentinel.schemas.escalation import (
    EscalationLogResponse,
    EscalationResolve,
    EscalationRuleCreate,
    EscalationRuleResponse,
    EscalationRuleUpdate,
    EscalationStats,
    EscalationStatusPreview,
    HierarchyResponse,
    HierarchyUpsert,
)
from sentinel.services import escalation as ladder
from sentinel.services.clock import ActorContext, Clock, as_utc

router = APIRouter(prefix="/api/v1/escalations", tags=["escalations"])


def _get_visible_log(db: Session, escalation_id: uuid.UUID, actor: ActorContext) -> EscalationLog:
    """Load a log; below supervisor only logs addressed to the actor are visible."""
    log = get_tenant_object(db, EscalationLog, escalation_id, actor, "Escalation")
    if not actor.is_supervisor_or_above and actor.user_id not in (
        log.current_recipient_id,
        log.original_recipient_id,
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Escalation not found")
    return log


def _channel_values(data: dict) -> dict:
    if data.get("notification_channels") is not None:
        data["notification_channels"] = [c.value for c in data["notification_channels"]]
    return data


# Rules


@router.get("/rules", response_model=list[EscalationRuleResponse])
def get_escalation_rules(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Tenant rules and the global defaults, by level."""
    return (
        db.query(EscalationRule)
        .filter(or_(EscalationRule.tenant_id == actor.tenant_id, EscalationRule.tenant_id.is_(None)))
        .order_by(EscalationRule.escalation_level, EscalationRule.sort_order)
        .all()
    )


@router.post("/rules", response_model=EscalationRuleResponse, status_code=status.HTTP_201_CREATED)
def create_escalation_rule(
    rule_data: EscalationRuleCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a ladder rule for the organization."""
    rule = EscalationRule(tenant_id=actor.tenant_id, **_channel_values(rule_data.model_dump()))
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


@router.patch("/rules/{rule_id}", response_model=EscalationRuleResponse)
def update_escalation_rule(
    rule_id: uuid.UUID,
    rule_data: EscalationRuleUpdate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a ladder rule; global rules need a system administrator."""
    rule = db.get(EscalationRule, rule_id)
    if rule is None or rule.tenant_id not in (actor.tenant_id, None):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Escalation rule not found")
    if rule.tenant_id is None and actor.role != Role.SYSTEM_ADMIN:
        raise PermissionDenied("Only system administrators can change global escalation rules.")

    for field, value in _channel_values(rule_data.model_dump(exclude_unset=True)).items():
        setattr(rule, field, value)
    db.commit()
    db.refresh(rule)
    return rule


# Hierarchy


@router.get("/hierarchy", response_model=list[HierarchyResponse])
def get_hierarchy(
    actor: SupervisorActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Who each employee escalates to."""
    return (
        db.query(OrganizationalHierarchy)
        .filter(OrganizationalHierarchy.tenant_id == actor.tenant_id)
        .all()
    )


@router.put("/hierarchy", response_model=HierarchyResponse)
def upsert_hierarchy(
    data: HierarchyUpsert,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Set an employee's supervisor, manager and director."""
    for user_id in (data.employee_id, data.supervisor_id, data.manager_id, data.director_id):
        if user_id is not None:
            get_tenant_object(db, User, user_id, actor, "User")
    if data.department_id is not None:
        get_tenant_object(db, Department, data.department_id, actor, "Department")

    entry = (
        db.query(OrganizationalHierarchy)
        .filter(
            OrganizationalHierarchy.tenant_id == actor.tenant_id,
            OrganizationalHierarchy.employee_id == data.employee_id,
        )
        .first()
    )
    if entry is None:
        entry = OrganizationalHierarchy(tenant_id=actor.tenant_id, employee_id=data.employee_id)
        db.add(entry)

    entry.supervisor_id = data.supervisor_id
    entry.manager_id = data.manager_id
    entry.director_id = data.director_id
    entry.department_id = data.department_id
    db.commit()
    db.refresh(entry)
    return entry


# Logs


@router.get("", response_model=list[EscalationLogResponse])
def get_escalations(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    status_filter: EscalationStatus | None = Query(default=None, alias="status"),
    item_id: uuid.UUID | None = None,
    mine: bool = False,
):
    """List escalations; employees only see the ones addressed to them."""
    query = db.query(EscalationLog).filter(EscalationLog.tenant_id == actor.tenant_id)
    if status_filter is not None:
        query = query.filter(EscalationLog.status == status_filter)
    if item_id is not None:
        query = query.filter(EscalationLog.item_id == item_id)
    if mine or not actor.is_supervisor_or_above:
        query = query.filter(
            or_(
                EscalationLog.current_recipient_id == actor.user_id,
                EscalationLog.original_recipient_id == actor.user_id,
            )
        )
    return query.order_by(EscalationLog.created_at.desc()).all()


@router.get("/stats", response_model=EscalationStats)
def get_escalation_stats(
    actor: SupervisorActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Escalation counts by status and level."""
    base = db.query(EscalationLog).filter(EscalationLog.tenant_id == actor.tenant_id)

    by_status = {s.value: 0 for s in EscalationStatus}
    for log_status, count in (
        base.with_entities(EscalationLog.status, func.count(EscalationLog.id))
        .group_by(EscalationLog.status)
        .all()
    ):
        by_status[EscalationStatus(log_status).value] = count

    by_level: dict[str, int] = {}
    for level, count in (
        base.with_entities(EscalationLog.escalation_level, func.count(EscalationLog.id))
        .group_by(EscalationLog.escalation_level)
        .all()
    ):
        by_level[str(level)] = count

    overdue = base.filter(
        EscalationLog.status.in_([EscalationStatus.PENDING, EscalationStatus.ESCALATED]),
        EscalationLog.next_escalation_at <= clock.now(),
    ).count()

    return EscalationStats(
        total=sum(by_status.values()), by_status=by_status, by_level=by_level, overdue=overdue
    )


@router.get("/{escalation_id}", response_model=EscalationLogResponse)
def get_escalation(
    escalation_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get an escalation."""
    return _get_visible_log(db, escalation_id, actor)


@router.get("/{escalation_id}/status", response_model=EscalationStatusPreview)
def get_escalation_status(
    escalation_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Current level with time remaining, and what the next sweep would do."""
    log = _get_visible_log(db, escalation_id, actor)
    now = clock.now()
    outcome = ladder.compute_level(
        log, ladder.load_escalation_rules(db, log.tenant_id), now, ladder.load_holders(db, log)
    )

    level = log.escalation_level or 0
    current_status = EscalationStatus(log.status)
    next_at = as_utc(log.next_escalation_at)
    remaining = None
    if current_status.is_active and next_at is not None:
        remaining = max(int((next_at - now).total_seconds()), 0)

    return EscalationStatusPreview(
        escalation_id=log.id,
        level=level,
        level_label=escalation_level_label(level),
        status=current_status,
        recipient_id=log.current_recipient_id,
        next_escalation_at=next_at,
        time_remaining_seconds=remaining,
        would_escalate=outcome.escalated,
        projected_level=outcome.level,
        projected_status=outcome.status,
        projected_recipient_id=outcome.recipient_id,
        reason=outcome.reason,
    )


@router.post("/{escalation_id}/acknowledge", response_model=EscalationLogResponse)
def acknowledge_escalation(
    escalation_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
):
    """Stop the ladder at its current level."""
    log = get_tenant_object(db, EscalationLog, escalation_id, actor, "Escalation")
    ladder.acknowledge(log, actor, clock.now())
    db.commit()
    db.refresh(log)
    return log


@router.post("/{escalation_id}/resolve", response_model=EscalationLogResponse)
def resolve_escalation(
    escalation_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    body: EscalationResolve | None = None,
):
    """Close the escalation."""
    log = get_tenant_object(db, EscalationLog, escalation_id, actor, "Escalation")
    ladder.resolve(log, actor, clock.now(), notes=body.notes if body else None)
    db.commit()
    db.refresh(log)
    return log
