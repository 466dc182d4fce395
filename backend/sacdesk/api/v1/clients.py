from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from sacdesk.api.deps import ClientDirectoryDep, FieldEngineDep, require
from sacdesk.models import CustomFieldEntity, Resource, User
from sacdesk.schemas import ClientCreate, ClientRead, ClientUpdate, CustomValuesPayload, FieldControl

router = APIRouter()


@router.get("/", response_model=List[ClientRead])
async def list_clients(
    clients: ClientDirectoryDep,
    current_user: User = Depends(require(Resource.CLIENTS, "read")),
    search: Optional[str] = Query(None),
    active_only: bool = Query(False),
):
    """Clients by name; ``search`` matches name, document or email."""
    return await clients.list_clients(search=search, active_only=active_only)


@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    clients: ClientDirectoryDep,
    current_user: User = Depends(require(Resource.CLIENTS, "create")),
):
    return await clients.create_client(
        payload.model_dump(exclude={"custom_values"}),
        created_by=current_user.id,
        custom_values=payload.custom_values,
    )


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: UUID,
    clients: ClientDirectoryDep,
    current_user: User = Depends(require(Resource.CLIENTS, "read")),
):
    return await clients.get_client(client_id)


@router.patch("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: UUID,
    payload: ClientUpdate,
    clients: ClientDirectoryDep,
    current_user: User = Depends(require(Resource.CLIENTS, "update")),
):
    return await clients.update_client(client_id, payload.model_dump(exclude_unset=True))


@router.get("/{client_id}/custom-values", response_model=Dict[UUID, str])
async def get_client_custom_values(
    client_id: UUID,
    clients: ClientDirectoryDep,
    current_user: User = Depends(require(Resource.CLIENTS, "read")),
):
    return await clients.get_custom_values(client_id)


@router.put("/{client_id}/custom-values", response_model=Dict[UUID, str])
async def save_client_custom_values(
    client_id: UUID,
    payload: CustomValuesPayload,
    clients: ClientDirectoryDep,
    current_user: User = Depends(require(Resource.CLIENTS, "update")),
):
    """Replace all values; fields left empty lose their stored value."""
    return await clients.save_custom_values(client_id, payload.values)


@router.get("/{client_id}/custom-form", response_model=List[FieldControl])
async def get_client_custom_form(
    client_id: UUID,
    clients: ClientDirectoryDep,
    fields: FieldEngineDep,
    current_user: User = Depends(require(Resource.CLIENTS, "read")),
):
    await clients.get_client(client_id)
    return await fields.render(CustomFieldEntity.CLIENT, client_id)
