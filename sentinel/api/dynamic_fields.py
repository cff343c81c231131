"""Dynamic field definition API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import AdminActor, CurrentActor, get_tenant_object
from sentinel.database import get_db
from sentinel.models import Category, Department, DynamicFieldDefinition
from sentinel.schemas.dynamic_field import DynamicFieldCreate, DynamicFieldResponse
from sentinel.services.dynamic_fields import applicable_definitions

router = APIRouter(prefix="/api/v1/dynamic-fields", tags=["dynamic-fields"])


@router.get("", response_model=list[DynamicFieldResponse])
def get_dynamic_fields(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    department_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
):
    """Field definitions that apply to items in a department and category."""
    definitions = (
        db.query(DynamicFieldDefinition)
        .filter(DynamicFieldDefinition.tenant_id == actor.tenant_id)
        .all()
    )
    return applicable_definitions(definitions, department_id, category_id)


@router.post("", response_model=DynamicFieldResponse, status_code=status.HTTP_201_CREATED)
def create_dynamic_field(
    field_data: DynamicFieldCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Define a custom field."""
    if field_data.department_id is not None:
        get_tenant_object(db, Department, field_data.department_id, actor, "Department")
    if field_data.category_id is not None:
        get_tenant_object(db, Category, field_data.category_id, actor, "Category")

    duplicate = (
        db.query(DynamicFieldDefinition)
        .filter(
            DynamicFieldDefinition.tenant_id == actor.tenant_id,
            DynamicFieldDefinition.field_key == field_data.field_key,
            DynamicFieldDefinition.department_id == field_data.department_id,
            DynamicFieldDefinition.category_id == field_data.category_id,
        )
        .first()
    )
    if duplicate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Field '{field_data.field_key}' already exists for this scope",
        )

    definition = DynamicFieldDefinition(tenant_id=actor.tenant_id, **field_data.model_dump())
    db.add(definition)
    db.commit()
    db.refresh(definition)
    return definition


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dynamic_field(
    field_id: uuid.UUID,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a field definition; values already stored on items are kept."""
    definition = get_tenant_object(db, DynamicFieldDefinition, field_id, actor, "Field")
    db.delete(definition)
    db.commit()
