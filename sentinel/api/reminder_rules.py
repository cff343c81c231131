"""Reminder rule API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import AdminActor, CurrentActor, get_tenant_object
from sentinel.database import get_db
from sentinel.models import Category, Item, ReminderRule
from sentinel.schemas.reminder_rule import (
    ReminderRuleCreate,
    ReminderRuleResponse,
    ReminderRuleUpdate,
)

router = APIRouter(prefix="/api/v1/reminder-rules", tags=["reminder-rules"])


def _as_values(data: dict) -> dict:
    if data.get("channels") is not None:
        data["channels"] = [c.value for c in data["channels"]]
    return data


@router.get("", response_model=list[ReminderRuleResponse])
def get_reminder_rules(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get all reminder rules of the organization."""
    return (
        db.query(ReminderRule)
        .filter(ReminderRule.tenant_id == actor.tenant_id)
        .order_by(ReminderRule.name)
        .all()
    )


@router.post("", response_model=ReminderRuleResponse, status_code=status.HTTP_201_CREATED)
def create_reminder_rule(
    rule_data: ReminderRuleCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a reminder rule."""
    rule = ReminderRule(tenant_id=actor.tenant_id, **_as_values(rule_data.model_dump()))
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


@router.get("/{rule_id}", response_model=ReminderRuleResponse)
def get_reminder_rule(
    rule_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a reminder rule."""
    return get_tenant_object(db, ReminderRule, rule_id, actor, "Reminder rule")


@router.patch("/{rule_id}", response_model=ReminderRuleResponse)
def update_reminder_rule(
    rule_id: uuid.UUID,
    rule_data: ReminderRuleUpdate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a reminder rule."""
    rule = get_tenant_object(db, ReminderRule, rule_id, actor, "Reminder rule")
    for field, value in _as_values(rule_data.model_dump(exclude_unset=True)).items():
        setattr(rule, field, value)
    db.commit()
    db.refresh(rule)
    return rule


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder_rule(
    rule_id: uuid.UUID,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a reminder rule that no item or category uses."""
    rule = get_tenant_object(db, ReminderRule, rule_id, actor, "Reminder rule")
    in_use = (
        db.query(Item).filter(Item.reminder_rule_id == rule.id).count()
        + db.query(Category).filter(Category.reminder_rule_id == rule.id).count()
    )
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Reminder rule is in use; deactivate it instead",
        )
    db.delete(rule)
    db.commit()
