"""Workflow evaluator: legal status transitions of an item and who may perform them."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from sentinel.exceptions import (
    CompletionProofMissing,
    ConcurrentModification,
    InvalidTransition,
    PermissionDenied,
    ReasonRequired,
)
from sentinel.models.enums import InAppNotificationType, Role, WorkflowStatus
from sentinel.models.in_app_notification import InAppNotification
from sentinel.models.item import Item
from sentinel.models.item_status_log import ItemStatusLog
from sentinel.services.clock import ActorContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """One actor-initiated workflow edge."""

    action: str
    sources: frozenset[WorkflowStatus]
    target: WorkflowStatus
    min_role: Role
    label: str
    requires_reason: bool = False
    requires_proof: bool = False


def _t(action, sources, target, min_role, label, **flags) -> Transition:
    return Transition(action, frozenset(sources), target, min_role, label, **flags)


WORKFLOW_TRANSITIONS: dict[str, Transition] = {
    t.action: t
    for t in (
        _t("acknowledge", [WorkflowStatus.NEW], WorkflowStatus.ACKNOWLEDGED, Role.EMPLOYEE,
           "Acknowledge"),
        _t("start", [WorkflowStatus.ACKNOWLEDGED], WorkflowStatus.IN_PROGRESS, Role.EMPLOYEE,
           "Start work"),
        _t("done", [WorkflowStatus.IN_PROGRESS], WorkflowStatus.DONE_PENDING_SUPERVISOR,
           Role.EMPLOYEE, "Mark done", requires_proof=True),
        _t("approve", [WorkflowStatus.DONE_PENDING_SUPERVISOR], WorkflowStatus.FINISHED,
           Role.SUPERVISOR, "Approve and finish"),
        _t("return", [WorkflowStatus.DONE_PENDING_SUPERVISOR], WorkflowStatus.RETURNED,
           Role.SUPERVISOR, "Return", requires_reason=True),
        _t("resubmit", [WorkflowStatus.RETURNED], WorkflowStatus.IN_PROGRESS, Role.EMPLOYEE,
           "Resume work"),
        _t("escalate", [WorkflowStatus.DONE_PENDING_SUPERVISOR],
           WorkflowStatus.ESCALATED_TO_MANAGER, Role.SUPERVISOR, "Escalate to manager",
           requires_reason=True),
        _t("manager_return", [WorkflowStatus.ESCALATED_TO_MANAGER], WorkflowStatus.RETURNED,
           Role.SUPERVISOR, "Return (manager)", requires_reason=True),
        _t("manager_close", [WorkflowStatus.ESCALATED_TO_MANAGER], WorkflowStatus.FINISHED,
           Role.ADMIN, "Close (manager)"),
    )
}


@dataclass(frozen=True)
class CompletionProof:
    description: str | None = None
    attachment_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.description or "").strip() and not (self.attachment_url or "").strip()


@dataclass
class TransitionResult:
    """Outcome of a legal transition: the new status plus every field it sets."""

    action: str
    old_status: WorkflowStatus
    new_status: WorkflowStatus
    changes: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None


def _actor_may(transition: Transition, role: Role, is_responsible: bool) -> bool:
    if not role.at_least(transition.min_role):
        return False
    # Below supervisor only the responsible person may move the item
    if not role.at_least(Role.SUPERVISOR) and not is_responsible:
        return False
    return True


def next_states(
    current: WorkflowStatus, actor_role: Role, is_responsible: bool = True
) -> set[WorkflowStatus]:
    """Statuses the actor can move an item to from ``current``.

    The ladder's system edge to ``escalated_to_manager`` is not included: no
    actor can request it.
    """
    current = WorkflowStatus(current)
    return {
        t.target
        for t in WORKFLOW_TRANSITIONS.values()
        if current in t.sources and _actor_may(t, Role(actor_role), is_responsible)
    }


def _is_responsible(item: Item, actor: ActorContext) -> bool:
    return item.responsible_user_id is not None and item.responsible_user_id == actor.user_id


def find_transition(current: WorkflowStatus, requested: str | WorkflowStatus) -> Transition | None:
    """Look up an edge by action name or by target status."""
    if isinstance(requested, WorkflowStatus):
        for transition in WORKFLOW_TRANSITIONS.values():
            if current in transition.sources and transition.target == requested:
                return transition
        return None
    transition = WORKFLOW_TRANSITIONS.get(requested)
    if transition is None or current not in transition.sources:
        return None
    return transition


def available_actions(item: Item, actor: ActorContext) -> list[dict[str, Any]]:
    """Actions the actor may take on the item right now."""
    if item.tenant_id != actor.tenant_id:
        return []
    current = WorkflowStatus(item.workflow_status)
    responsible = _is_responsible(item, actor)
    return [
        {
            "action": t.action,
            "label": t.label,
            "target": t.target,
            "requires_reason": t.requires_reason,
            "requires_proof": t.requires_proof,
        }
        for t in WORKFLOW_TRANSITIONS.values()
        if current in t.sources and _actor_may(t, actor.role, responsible)
    ]


def evaluate_transition(
    item: Item,
    requested: str | WorkflowStatus,
    actor: ActorContext,
    now: datetime,
    reason: str | None = None,
    proof: CompletionProof | None = None,
) -> TransitionResult:
    """Validate a transition request without touching the item.

    Raises InvalidTransition (or a subclass) for an unknown edge or missing
    reason/proof and PermissionDenied when the actor may not take the edge.
    """
    current = WorkflowStatus(item.workflow_status)
    if current.is_terminal:
        raise InvalidTransition("Finished items cannot change status.", status=current.value)

    transition = find_transition(current, requested)
    if transition is None:
        requested_name = requested.value if isinstance(requested, WorkflowStatus) else requested
        raise InvalidTransition(
            f"Cannot go from '{current.label}' with '{requested_name}'.",
            status=current.value,
            requested=requested_name,
        )

    if item.tenant_id != actor.tenant_id or not _actor_may(
        transition, actor.role, _is_responsible(item, actor)
    ):
        raise PermissionDenied(action=transition.action)

    reason = (reason or "").strip() or None
    if transition.requires_reason and not reason:
        raise ReasonRequired(action=transition.action)

    proof = proof or CompletionProof()
    if transition.requires_proof and proof.is_empty:
        raise CompletionProofMissing(action=transition.action)

    changes: dict[str, Any] = {"workflow_status": transition.target}
    if transition.target == WorkflowStatus.ACKNOWLEDGED:
        changes["acknowledged_at"] = now
    elif transition.target == WorkflowStatus.IN_PROGRESS and item.started_at is None:
        changes["started_at"] = now
    elif transition.target == WorkflowStatus.DONE_PENDING_SUPERVISOR:
        changes["completion_description"] = (proof.description or "").strip() or None
        changes["completion_attachment_url"] = (proof.attachment_url or "").strip() or None
        changes["completion_date"] = now
        changes["completed_by_id"] = actor.user_id
    elif transition.target == WorkflowStatus.FINISHED:
        changes["finished_at"] = now

    return TransitionResult(
        action=transition.action,
        old_status=current,
        new_status=transition.target,
        changes=changes,
        reason=reason,
    )


def escalate_by_ladder(item: Item) -> TransitionResult | None:
    """System edge taken when the escalation ladder reaches management.

    Any non-terminal status may move to ``escalated_to_manager``; returns None
    when the item is finished or already there.
    """
    current = WorkflowStatus(item.workflow_status)
    if current.is_terminal or current == WorkflowStatus.ESCALATED_TO_MANAGER:
        return None
    return TransitionResult(
        action="ladder_escalation",
        old_status=current,
        new_status=WorkflowStatus.ESCALATED_TO_MANAGER,
        changes={"workflow_status": WorkflowStatus.ESCALATED_TO_MANAGER},
        reason="Reminder escalated to management without acknowledgement",
    )


def record_transition(
    db: Session,
    item: Item,
    result: TransitionResult,
    changed_by_id=None,
    channel: str = "web",
    now: datetime | None = None,
) -> None:
    """Stage the field changes, timeline entry and notifications of a transition."""
    for attr, value in result.changes.items():
        setattr(item, attr, value)

    log_entry = ItemStatusLog(
        item_id=item.id,
        old_status=result.old_status,
        new_status=result.new_status,
        reason=result.reason,
        channel=channel,
        changed_by_id=changed_by_id,
    )
    if now is not None:
        log_entry.changed_at = now
    db.add(log_entry)

    notify_user_id = item.responsible_user_id
    if result.new_status in (WorkflowStatus.RETURNED, WorkflowStatus.FINISHED) and notify_user_id:
        if notify_user_id != changed_by_id:
            message = f"'{item.title}' is now {result.new_status.label.lower()}."
            if result.reason:
                message = f"{message} Reason: {result.reason}"
            db.add(
                InAppNotification(
                    tenant_id=item.tenant_id,
                    user_id=notify_user_id,
                    item_id=item.id,
                    notification_type=InAppNotificationType.WORKFLOW,
                    title=result.new_status.label,
                    message=message,
                    priority="high" if result.new_status == WorkflowStatus.RETURNED else "normal",
                    action_url=f"/items/{item.id}",
                )
            )


def apply_transition(
    db: Session,
    item: Item,
    requested: str | WorkflowStatus,
    actor: ActorContext,
    now: datetime,
    reason: str | None = None,
    proof: CompletionProof | None = None,
    expected_version: int | None = None,
) -> TransitionResult:
    """Validate and persist a transition in one transaction.

    The item row is written with a version compare-and-swap; on any failure
    nothing is committed.
    """
    if expected_version is not None and item.version != expected_version:
        raise ConcurrentModification(expected=expected_version, actual=item.version)

    result = evaluate_transition(item, requested, actor, now, reason=reason, proof=proof)
    record_transition(db, item, result, changed_by_id=actor.user_id, channel="web", now=now)

    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConcurrentModification() from e

    db.refresh(item)
    logger.info(
        f"Item {item.id}: {result.old_status.value} -> {result.new_status.value} "
        f"({result.action}) by {actor.user_id}"
    )
    return result
