"""FastAPI dependencies for authentication, tenancy and the clock."""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from sentinel.config import get_settings
from sentinel.database import get_db
from sentinel.exceptions import PermissionDenied
from sentinel.models.enums import Role
from sentinel.models.user import User
from sentinel.services.auth import decode_access_token
from sentinel.services.clock import ActorContext, Clock

security = HTTPBearer()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    try:
        user_uuid = uuid.UUID(user_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    user = db.get(User, user_uuid)
    if user is None or not user.tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_actor(current_user: Annotated[User, Depends(get_current_user)]) -> ActorContext:
    """Explicit tenant/user/role context for the core services."""
    return ActorContext.for_user(current_user)


def get_clock() -> Clock:
    """Clock in the business timezone."""
    return Clock(get_settings().timezone)


def require_role(minimum: Role):
    """Dependency factory rejecting actors below ``minimum``."""

    def check(actor: Annotated[ActorContext, Depends(get_actor)]) -> ActorContext:
        if not actor.role.at_least(minimum):
            raise PermissionDenied(f"This action requires the {minimum.value} role or higher.")
        return actor

    return check


CurrentActor = Annotated[ActorContext, Depends(get_actor)]
SupervisorActor = Annotated[ActorContext, Depends(require_role(Role.SUPERVISOR))]
AdminActor = Annotated[ActorContext, Depends(require_role(Role.ADMIN))]


def get_tenant_object(db: Session, model, object_id: uuid.UUID, actor: ActorContext, label: str):
    """Load a tenant-owned row, 404 when missing or owned by another tenant."""
    obj = db.get(model, object_id)
    if obj is None or obj.tenant_id != actor.tenant_id or getattr(obj, "deleted_at", None):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj
