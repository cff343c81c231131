"""Department and category API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import AdminActor, CurrentActor, get_tenant_object
from sentinel.database import get_db
from sentinel.models.category import Category
from sentinel.models.department import Department
from sentinel.models.reminder_rule import ReminderRule
from sentinel.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    DepartmentCreate,
    DepartmentResponse,
)

router = APIRouter(prefix="/api/v1", tags=["categories"])


@router.get("/departments", response_model=list[DepartmentResponse])
def get_departments(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get all departments of the organization."""
    return (
        db.query(Department)
        .filter(Department.tenant_id == actor.tenant_id)
        .order_by(Department.name)
        .all()
    )


@router.post(
    "/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED
)
def create_department(
    department_data: DepartmentCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new department."""
    department = Department(tenant_id=actor.tenant_id, **department_data.model_dump())
    db.add(department)
    db.commit()
    db.refresh(department)
    return department


@router.get("/categories", response_model=list[CategoryResponse])
def get_categories(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get all categories of the organization."""
    return (
        db.query(Category)
        .filter(Category.tenant_id == actor.tenant_id)
        .order_by(Category.name)
        .all()
    )


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: CategoryCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new category, optionally with a default reminder rule."""
    if category_data.reminder_rule_id is not None:
        get_tenant_object(db, ReminderRule, category_data.reminder_rule_id, actor, "Reminder rule")

    category = Category(tenant_id=actor.tenant_id, **category_data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category
