from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from sacdesk.api.deps import AuditDep, FieldEngineDep, require
from sacdesk.models import Resource, SystemLogAction, User
from sacdesk.schemas import CustomFieldCreate, CustomFieldRead, CustomFieldUpdate, FieldControl, ReorderRequest

router = APIRouter()


@router.get("/", response_model=List[CustomFieldRead])
async def list_custom_fields(
    fields: FieldEngineDep,
    current_user: User = Depends(require(Resource.CUSTOM_FIELDS, "read")),
    entity_type: Optional[str] = Query(None),
    include_inactive: bool = Query(True),
):
    return await fields.list_fields(entity_type, include_inactive=include_inactive)


@router.get("/form/{entity_type}", response_model=List[FieldControl])
async def get_blank_form(
    entity_type: str,
    fields: FieldEngineDep,
    current_user: User = Depends(require(Resource.CUSTOM_FIELDS, "read")),
):
    """Empty controls for a new ticket or client form."""
    return await fields.render(entity_type)


@router.post("/", response_model=CustomFieldRead, status_code=status.HTTP_201_CREATED)
async def create_custom_field(
    payload: CustomFieldCreate,
    fields: FieldEngineDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.CUSTOM_FIELDS, "create")),
):
    field = await fields.define_field(
        payload.entity_type,
        payload.name,
        payload.field_type,
        options=payload.options,
        required=payload.is_required,
        created_by=current_user.id,
    )
    await audit(
        SystemLogAction.CREATE,
        Resource.CUSTOM_FIELDS,
        field.id,
        {"name": field.name, "entity_type": field.entity_type, "field_type": field.field_type},
    )
    return field


@router.patch("/{field_id}", response_model=CustomFieldRead)
async def update_custom_field(
    field_id: UUID,
    payload: CustomFieldUpdate,
    fields: FieldEngineDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.CUSTOM_FIELDS, "update")),
):
    field = await fields.update_field(
        field_id,
        name=payload.name,
        field_type=payload.field_type,
        options=payload.options,
        required=payload.is_required,
    )
    if payload.is_active is not None and payload.is_active != field.is_active:
        field = await fields.set_active(field_id, payload.is_active)
    await audit(
        SystemLogAction.UPDATE,
        Resource.CUSTOM_FIELDS,
        field_id,
        payload.model_dump(mode="json", exclude_unset=True),
    )
    return field


@router.post("/{field_id}/reorder", response_model=List[CustomFieldRead])
async def reorder_custom_field(
    field_id: UUID,
    payload: ReorderRequest,
    fields: FieldEngineDep,
    current_user: User = Depends(require(Resource.CUSTOM_FIELDS, "update")),
):
    """Swap with the neighbouring field of the same entity type."""
    return await fields.reorder(field_id, payload.direction)


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_custom_field(
    field_id: UUID,
    fields: FieldEngineDep,
    audit: AuditDep,
    current_user: User = Depends(require(Resource.CUSTOM_FIELDS, "delete")),
) -> None:
    await fields.delete_field(field_id)
    await audit(SystemLogAction.DELETE, Resource.CUSTOM_FIELDS, field_id)
