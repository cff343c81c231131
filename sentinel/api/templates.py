"""Message template API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sentinel.api.dependencies import AdminActor, CurrentActor, get_tenant_object
from sentinel.database import get_db
from sentinel.models import Item, MessageTemplate
from sentinel.models.enums import TemplateChannel, TemplateType
from sentinel.schemas.template import (
    MessageTemplateCreate,
    MessageTemplateResponse,
    MessageTemplateUpdate,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
)
from sentinel.services.templates import item_context, placeholders, render

router = APIRouter(prefix="/api/v1/message-templates", tags=["message-templates"])


def _check_required_fields(text: str, required_fields: list[str]) -> None:
    unused = [f for f in required_fields if f not in placeholders(text)]
    if unused:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Required fields not used in template text: {', '.join(unused)}",
        )


@router.get("", response_model=list[MessageTemplateResponse])
def get_templates(
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
    template_type: TemplateType | None = None,
    channel: TemplateChannel | None = None,
    include_inactive: bool = False,
):
    """List message templates."""
    query = db.query(MessageTemplate).filter(MessageTemplate.tenant_id == actor.tenant_id)
    if template_type is not None:
        query = query.filter(MessageTemplate.template_type == template_type)
    if channel is not None:
        query = query.filter(MessageTemplate.channel == channel)
    if not include_inactive:
        query = query.filter(MessageTemplate.is_active.is_(True))
    return query.order_by(MessageTemplate.name).all()


@router.post("", response_model=MessageTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(
    template_data: MessageTemplateCreate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a message template."""
    _check_required_fields(template_data.template_text, template_data.required_fields)
    template = MessageTemplate(tenant_id=actor.tenant_id, version=1, **template_data.model_dump())
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@router.get("/{template_id}", response_model=MessageTemplateResponse)
def get_template(
    template_id: uuid.UUID,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a message template."""
    return get_tenant_object(db, MessageTemplate, template_id, actor, "Template")


@router.patch("/{template_id}", response_model=MessageTemplateResponse)
def update_template(
    template_id: uuid.UUID,
    template_data: MessageTemplateUpdate,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a template; changing its text bumps the version."""
    template = get_tenant_object(db, MessageTemplate, template_id, actor, "Template")
    update_data = template_data.model_dump(exclude_unset=True)

    text = update_data.get("template_text", template.template_text)
    required = update_data.get("required_fields", template.required_fields) or []
    _check_required_fields(text, required)

    if "template_text" in update_data and update_data["template_text"] != template.template_text:
        template.version = (template.version or 1) + 1
    for field, value in update_data.items():
        setattr(template, field, value)
    db.commit()
    db.refresh(template)
    return template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: uuid.UUID,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a message template."""
    template = get_tenant_object(db, MessageTemplate, template_id, actor, "Template")
    db.delete(template)
    db.commit()


@router.post(
    "/{template_id}/duplicate",
    response_model=MessageTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_template(
    template_id: uuid.UUID,
    actor: AdminActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Copy a template as a new, non-default template at version 1."""
    source = get_tenant_object(db, MessageTemplate, template_id, actor, "Template")
    copy = MessageTemplate(
        tenant_id=actor.tenant_id,
        name=f"{source.name} (copy)",
        description=source.description,
        channel=source.channel,
        template_type=source.template_type,
        escalation_level=source.escalation_level,
        template_text=source.template_text,
        required_fields=list(source.required_fields or []),
        optional_fields=list(source.optional_fields or []),
        version=1,
        is_active=source.is_active,
        is_default=False,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


@router.post("/{template_id}/preview", response_model=TemplatePreviewResponse)
def preview_template(
    template_id: uuid.UUID,
    request: TemplatePreviewRequest,
    actor: CurrentActor,
    db: Annotated[Session, Depends(get_db)],
):
    """Render a template against an item and/or sample values."""
    template = get_tenant_object(db, MessageTemplate, template_id, actor, "Template")

    context: dict = {}
    if request.item_id is not None:
        item = get_tenant_object(db, Item, request.item_id, actor, "Item")
        context.update(item_context(item, request.days_left))
    context.update(request.sample_data)

    missing = [
        f for f in (template.required_fields or []) if context.get(f) in (None, "")
    ]
    return TemplatePreviewResponse(
        rendered=render(template.template_text, context),
        placeholders=placeholders(template.template_text),
        missing_fields=missing,
    )
