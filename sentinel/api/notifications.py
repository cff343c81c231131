"""In-app notification API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import CurrentActor
from sentinel.database import get_db
from sentinel.models import InAppNotification
from sentinel.schemas.notification import (
    InAppNotificationResponse,
    MarkReadResult,
    UnreadCountResponse,
)
from sentinel.services.clock import ActorContext

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


def _own_notifications(db: Session, actor: ActorContext):
    return db.query(InAppNotification).filter(
        InAppNotification.tenant_id == actor.tenant_id,
        InAppNotification.user_id == actor.user_id,
    )


@router.get("", response_model=list[InAppNotificationResponse])
async def get_notifications(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
) -> list[InAppNotification]:
    """Get the caller's notifications, newest first."""
    query = _own_notifications(db, actor)
    if unread_only:
        query = query.filter(InAppNotification.is_read.is_(False))
    return query.order_by(InAppNotification.created_at.desc()).limit(limit).all()


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
) -> UnreadCountResponse:
    """Number of unread notifications for the bell badge."""
    count = _own_notifications(db, actor).filter(InAppNotification.is_read.is_(False)).count()
    return UnreadCountResponse(unread=count)


@router.post("/{notification_id}/read", response_model=InAppNotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
) -> InAppNotification:
    """Mark one notification as read."""
    notification = (
        _own_notifications(db, actor).filter(InAppNotification.id == notification_id).first()
    )
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/read-all", response_model=MarkReadResult)
async def mark_all_read(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
) -> MarkReadResult:
    """Mark every unread notification of the caller as read."""
    updated = (
        _own_notifications(db, actor)
        .filter(InAppNotification.is_read.is_(False))
        .update({InAppNotification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return MarkReadResult(updated=updated)
