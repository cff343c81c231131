"""Recipient API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import CurrentActor, SupervisorActor, get_tenant_object
from sentinel.database import get_db
from sentinel.models.recipient import Recipient
from sentinel.models.user import User
from sentinel.schemas.recipient import RecipientCreate, RecipientResponse, RecipientUpdate

router = APIRouter(prefix="/api/v1/recipients", tags=["recipients"])


def _check_linked_user(db: Session, user_id: uuid.UUID | None, actor) -> None:
    if user_id is not None:
        get_tenant_object(db, User, user_id, actor, "User")


@router.get("", response_model=list[RecipientResponse])
def get_recipients(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    include_inactive: bool = False,
):
    """Get recipients of the organization."""
    query = db.query(Recipient).filter(Recipient.tenant_id == actor.tenant_id)
    if not include_inactive:
        query = query.filter(Recipient.is_active.is_(True))
    return query.order_by(Recipient.name).all()


@router.post("", response_model=RecipientResponse, status_code=status.HTTP_201_CREATED)
def create_recipient(
    recipient_data: RecipientCreate,
    actor: SupervisorActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a recipient."""
    _check_linked_user(db, recipient_data.user_id, actor)
    recipient = Recipient(tenant_id=actor.tenant_id, **recipient_data.model_dump())
    db.add(recipient)
    db.commit()
    db.refresh(recipient)
    return recipient


@router.get("/{recipient_id}", response_model=RecipientResponse)
def get_recipient(
    recipient_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a recipient."""
    return get_tenant_object(db, Recipient, recipient_id, actor, "Recipient")


@router.patch("/{recipient_id}", response_model=RecipientResponse)
def update_recipient(
    recipient_id: uuid.UUID,
    recipient_data: RecipientUpdate,
    actor: SupervisorActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a recipient."""
    recipient = get_tenant_object(db, Recipient, recipient_id, actor, "Recipient")
    update_data = recipient_data.model_dump(exclude_unset=True)
    if "user_id" in update_data:
        _check_linked_user(db, update_data["user_id"], actor)
    for field, value in update_data.items():
        setattr(recipient, field, value)
    db.commit()
    db.refresh(recipient)
    return recipient


@router.delete("/{recipient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipient(
    recipient_id: uuid.UUID,
    actor: SupervisorActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Deactivate a recipient; delivery history keeps pointing at it."""
    recipient = get_tenant_object(db, Recipient, recipient_id, actor, "Recipient")
    recipient.is_active = False
    db.commit()
