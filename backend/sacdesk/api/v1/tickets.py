from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from sacdesk.api.deps import FieldEngineDep, LifecycleDep, require
from sacdesk.models import CustomFieldEntity, Resource, Role, User
from sacdesk.schemas import (
    CustomValuesPayload,
    FieldControl,
    TicketCommentCreate,
    TicketCommentRead,
    TicketCreate,
    TicketHistoryRead,
    TicketObserverCreate,
    TicketObserverRead,
    TicketRead,
    TicketStageChange,
    TicketUpdate,
)

router = APIRouter()

can_read = require(Resource.TICKETS, "read")
can_create = require(Resource.TICKETS, "create")
can_update = require(Resource.TICKETS, "update")


def is_staff(user: User) -> bool:
    """Staff may see internal comments."""
    return user.role != Role.USER


@router.get(
    "/",
    response_model=List[TicketRead],
    status_code=status.HTTP_200_OK,
)
async def list_tickets(
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
    stage: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    analyst_id: Optional[UUID] = Query(None),
    client_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
    assigned_to_me: bool = Query(False),
):
    """Get tickets newest first with optional filters."""
    if assigned_to_me:
        analyst_id = current_user.id
    return await lifecycle.list_tickets(
        stage=stage,
        priority=priority,
        analyst_id=analyst_id,
        client_id=client_id,
        search=search,
    )


@router.post(
    "/",
    response_model=TicketRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_ticket(
    payload: TicketCreate,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_create),
):
    """Create a new ticket in the default stage."""
    return await lifecycle.create(
        title=payload.title,
        description=payload.description,
        creator_id=current_user.id,
        priority=payload.priority,
        client_id=payload.client_id,
        analyst_id=payload.analyst_id,
        deadline=payload.deadline,
        nf_number=payload.nf_number,
        custom_values=payload.custom_values,
    )


@router.get("/{ticket_id}", response_model=TicketRead)
async def get_ticket(
    ticket_id: UUID,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
):
    return await lifecycle.get_ticket(ticket_id)


@router.patch("/{ticket_id}", response_model=TicketRead)
async def update_ticket(
    ticket_id: UUID,
    payload: TicketUpdate,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_update),
):
    """Save the sent fields; each changed field gets its own history entry."""
    return await lifecycle.update_fields(ticket_id, payload.model_dump(exclude_unset=True), current_user.id)


@router.post("/{ticket_id}/stage", response_model=TicketRead)
async def change_ticket_stage(
    ticket_id: UUID,
    payload: TicketStageChange,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_update),
):
    return await lifecycle.change_stage(ticket_id, payload.stage, current_user.id)


# === COMMENTS ===

@router.get("/{ticket_id}/comments", response_model=List[TicketCommentRead])
async def list_ticket_comments(
    ticket_id: UUID,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
    include_internal: bool = Query(False),
):
    """Public comments; staff may ask for internal ones too."""
    return await lifecycle.list_comments(ticket_id, include_internal=include_internal and is_staff(current_user))


@router.post(
    "/{ticket_id}/comments",
    response_model=TicketCommentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_ticket_comment(
    ticket_id: UUID,
    payload: TicketCommentCreate,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
):
    return await lifecycle.add_comment(
        ticket_id,
        current_user.id,
        payload.content,
        is_internal=payload.is_internal and is_staff(current_user),
    )


# === OBSERVERS ===

@router.get("/{ticket_id}/observers", response_model=List[TicketObserverRead])
async def list_ticket_observers(
    ticket_id: UUID,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
):
    await lifecycle.get_ticket(ticket_id)
    return await lifecycle.list_observers(ticket_id)


@router.post(
    "/{ticket_id}/observers",
    response_model=TicketObserverRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_ticket_observer(
    ticket_id: UUID,
    payload: TicketObserverCreate,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_update),
):
    return await lifecycle.add_observer(ticket_id, payload.user_id, current_user.id)


@router.delete("/{ticket_id}/observers/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_ticket_observer(
    ticket_id: UUID,
    user_id: UUID,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_update),
) -> None:
    await lifecycle.remove_observer(ticket_id, user_id, current_user.id)


# === HISTORY & CUSTOM FIELDS ===

@router.get("/{ticket_id}/history", response_model=List[TicketHistoryRead])
async def list_ticket_history(
    ticket_id: UUID,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
):
    return await lifecycle.list_history(ticket_id)


@router.get("/{ticket_id}/custom-values", response_model=Dict[UUID, str])
async def get_ticket_custom_values(
    ticket_id: UUID,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_read),
):
    return await lifecycle.get_custom_values(ticket_id)


@router.put("/{ticket_id}/custom-values", response_model=Dict[UUID, str])
async def save_ticket_custom_values(
    ticket_id: UUID,
    payload: CustomValuesPayload,
    lifecycle: LifecycleDep,
    current_user: User = Depends(can_update),
):
    """Upsert non-empty values; empty ones leave stored values alone."""
    return await lifecycle.save_custom_values(ticket_id, payload.values)


@router.get("/{ticket_id}/custom-form", response_model=List[FieldControl])
async def get_ticket_custom_form(
    ticket_id: UUID,
    lifecycle: LifecycleDep,
    fields: FieldEngineDep,
    current_user: User = Depends(can_read),
):
    await lifecycle.get_ticket(ticket_id)
    return await fields.render(CustomFieldEntity.TICKET, ticket_id)
