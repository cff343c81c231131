"""Authentication and user management API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import AdminActor, get_current_user
from sentinel.database import get_db
from sentinel.exceptions import PermissionDenied
from sentinel.models.department import Department
from sentinel.models.enums import Role
from sentinel.models.user import User
from sentinel.schemas.auth import AuthResponse, UserCreate, UserLogin, UserRegister, UserResponse
from sentinel.services.auth import (
    authenticate_user,
    create_access_token,
    create_tenant_with_admin,
    create_user,
    get_user_by_email,
)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])
users_router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new organization and its administrator."""
    # Check if user already exists
    existing_user = get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = create_tenant_with_admin(
        db, user_data.tenant_name, user_data.email, user_data.password, user_data.name
    )

    # Generate token
    access_token = create_access_token(user.id, user.email, user.tenant_id)

    return AuthResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user.id, user.email, user.tenant_id)

    return AuthResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user


@users_router.get("", response_model=list[UserResponse])
def list_users(
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
    role: Role | None = None,
):
    """List users in the caller's organization."""
    query = db.query(User).filter(User.tenant_id == actor.tenant_id)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.name, User.email).all()


@users_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def add_user(
    user_data: UserCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a user in the caller's organization."""
    if user_data.role == Role.SYSTEM_ADMIN and actor.role != Role.SYSTEM_ADMIN:
        raise PermissionDenied("Only system administrators can create system administrators.")

    if get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    if user_data.department_id is not None:
        department = db.get(Department, user_data.department_id)
        if department is None or department.tenant_id != actor.tenant_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")

    return create_user(
        db,
        actor.tenant_id,
        user_data.email,
        user_data.password,
        name=user_data.name,
        role=user_data.role,
        phone=user_data.phone,
        telegram_chat_id=user_data.telegram_chat_id,
        department_id=user_data.department_id,
    )
