"""
Ticket record lifecycle.

Creates tickets, edits their core fields and moves them between stages.
Every accepted mutation appends to the ticket's history log. The entry is
written in the same transaction as the mutation, so the log never records a
change that was rolled back and a change is never kept without its entry.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from sacdesk.core.config import settings
from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import (
    Client,
    CustomFieldEntity,
    Ticket,
    TicketComment,
    TicketHistory,
    TicketHistoryAction,
    TicketObserver,
    TicketPriority,
    User,
)
from sacdesk.services.custom_fields import CustomFieldEngine
from sacdesk.services.workflow_stages import WorkflowStageRegistry

logger = logging.getLogger(__name__)

# Editable columns and the label written to history for each
FIELD_LABELS = {
    "title": "Title",
    "description": "Description",
    "client_id": "Client",
    "analyst_id": "Analyst",
    "priority": "Priority",
    "nf_number": "NF number",
    "deadline": "Deadline",
}


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _required_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def _check_priority(priority: str) -> None:
    if priority not in TicketPriority.ALL:
        raise ValidationError(f"Priority must be one of {', '.join(TicketPriority.ALL)}")


def history_entry(
    ticket_id: UUID,
    user_id: Optional[UUID],
    action: str,
    field_name: Optional[str] = None,
    old_value: Optional[str] = None,
    new_value: Optional[str] = None,
) -> TicketHistory:
    """Unsaved history row, handed to the gateway with the write it describes."""
    return TicketHistory(
        ticket_id=ticket_id,
        user_id=user_id,
        action=action,
        field_name=field_name,
        old_value=old_value,
        new_value=new_value,
    )


class TicketLifecycle:
    def __init__(
        self,
        gateway: PersistenceGateway,
        registry: WorkflowStageRegistry,
        fields: Optional[CustomFieldEngine] = None,
    ):
        self.gateway = gateway
        self.registry = registry
        self.fields = fields or CustomFieldEngine(gateway)

    async def _check_references(self, client_id: Optional[UUID], analyst_id: Optional[UUID]) -> None:
        if client_id is not None and not await self.gateway.get(Client, client_id):
            raise NotFound("Client", client_id)
        if analyst_id is not None and not await self.gateway.get(User, analyst_id):
            raise NotFound("User", analyst_id)

    # === TICKETS ===

    async def check_new(
        self,
        title: str,
        description: str,
        priority: str = TicketPriority.MEDIUM,
        client_id: Optional[UUID] = None,
        analyst_id: Optional[UUID] = None,
        custom_values: Optional[Mapping[UUID, object]] = None,
        enforce_required: bool = True,
    ) -> tuple[str, str]:
        """Validate a new ticket without writing anything; returns the trimmed title and description."""
        title = _required_text(title, "Title")
        description = _required_text(description, "Description")
        _check_priority(priority)
        await self._check_references(client_id, analyst_id)
        await self.fields.prepare_values(
            CustomFieldEntity.TICKET, custom_values or {}, enforce_required=enforce_required
        )
        return title, description

    async def create(
        self,
        title: str,
        description: str,
        creator_id: UUID,
        priority: str = TicketPriority.MEDIUM,
        client_id: Optional[UUID] = None,
        analyst_id: Optional[UUID] = None,
        deadline: Optional[datetime] = None,
        nf_number: Optional[str] = None,
        custom_values: Optional[Mapping[UUID, object]] = None,
        history_action: str = TicketHistoryAction.CREATED,
        new_client: Optional[Client] = None,
        enforce_required: bool = True,
    ) -> Ticket:
        """Open a ticket in the default stage.

        ``new_client`` is an unsaved client row inserted in the ticket's own
        transaction, so a rejected ticket never leaves a client behind.
        """
        title, description = await self.check_new(
            title,
            description,
            priority,
            client_id=None if new_client else client_id,
            analyst_id=analyst_id,
            custom_values=custom_values,
            enforce_required=enforce_required,
        )
        if new_client is not None:
            client_id = new_client.id

        stage = await self.registry.default_stage()
        now = datetime.utcnow()
        ticket = Ticket(
            title=title,
            description=description,
            priority=priority,
            stage=stage.slug,
            client_id=client_id,
            analyst_id=analyst_id,
            deadline=deadline,
            nf_number=nf_number or None,
            created_by=creator_id,
            created_at=now,
            updated_at=now,
            resolved_at=now if stage.slug == self.registry.resolved_slug else None,
        )
        ticket = await self.gateway.insert_numbered(
            ticket,
            sequence=settings.TICKET_NUMBER_SEQUENCE,
            parents=[new_client] if new_client is not None else [],
            with_rows=[history_entry(ticket.id, creator_id, history_action, new_value=title)],
        )
        if custom_values:
            await self.fields.save_values(CustomFieldEntity.TICKET, ticket.id, custom_values)

        logger.info(f"Ticket #{ticket.number} created in stage {ticket.stage}")
        return ticket

    async def get_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = await self.gateway.get(Ticket, ticket_id)
        if not ticket:
            raise NotFound("Ticket", ticket_id)
        return ticket

    async def list_tickets(
        self,
        stage: Optional[str] = None,
        priority: Optional[str] = None,
        analyst_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Ticket]:
        """Tickets newest first."""
        filters = []
        if stage:
            filters.append(Ticket.stage == stage)
        if priority:
            filters.append(Ticket.priority == priority)
        if analyst_id:
            filters.append(Ticket.analyst_id == analyst_id)
        if client_id:
            filters.append(Ticket.client_id == client_id)
        if search:
            filters.append(Ticket.title.ilike(f"%{search}%"))
        return await self.gateway.select(
            Ticket,
            *filters,
            order_by=[Ticket.created_at.desc(), Ticket.number.desc()],
            limit=limit,
        )

    async def update_fields(self, ticket_id: UUID, patch: Mapping[str, Any], actor_id: Optional[UUID]) -> Ticket:
        """Persist only the changed columns and log one history entry per change."""
        unknown = set(patch) - set(FIELD_LABELS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited here: {', '.join(sorted(unknown))}")

        values = dict(patch)
        if "title" in values:
            values["title"] = _required_text(values["title"], "Title")
        if "description" in values:
            values["description"] = _required_text(values["description"], "Description")
        if "priority" in values:
            _check_priority(values["priority"])
        if "nf_number" in values and not values["nf_number"]:
            values["nf_number"] = None

        ticket = await self.get_ticket(ticket_id)
        changed: Dict[str, Any] = {
            name: value for name, value in values.items() if getattr(ticket, name) != value
        }
        if not changed:
            return ticket
        await self._check_references(changed.get("client_id"), changed.get("analyst_id"))

        updated = await self.gateway.update(
            Ticket,
            {**changed, "updated_at": datetime.utcnow()},
            Ticket.id == ticket_id,
            with_rows=[
                history_entry(
                    ticket_id,
                    actor_id,
                    TicketHistoryAction.FIELD_CHANGED.format(label=FIELD_LABELS[name]),
                    field_name=name,
                    old_value=stringify(getattr(ticket, name)),
                    new_value=stringify(value),
                )
                for name, value in changed.items()
            ],
        )
        if not updated:
            raise NotFound("Ticket", ticket_id)

        logger.info(f"Ticket #{ticket.number} updated: {', '.join(sorted(changed))}")
        return updated[0]

    async def change_stage(self, ticket_id: UUID, new_stage_slug: str, actor_id: Optional[UUID]) -> Ticket:
        """Move a ticket to another active stage, keeping resolved_at in step."""
        ticket = await self.get_ticket(ticket_id)
        stage = await self.registry.get_active_by_slug(new_stage_slug)
        if ticket.stage == stage.slug:
            return ticket

        now = datetime.utcnow()
        resolved_at = now if stage.slug == self.registry.resolved_slug else None
        updated = await self.gateway.update(
            Ticket,
            {"stage": stage.slug, "resolved_at": resolved_at, "updated_at": now},
            Ticket.id == ticket_id,
            with_rows=[
                history_entry(
                    ticket_id,
                    actor_id,
                    TicketHistoryAction.STAGE_CHANGED,
                    field_name="stage",
                    old_value=ticket.stage,
                    new_value=stage.slug,
                )
            ],
        )
        if not updated:
            raise NotFound("Ticket", ticket_id)

        logger.info(f"Ticket #{ticket.number} stage {ticket.stage} -> {stage.slug}")
        return updated[0]

    # === COMMENTS ===

    async def add_comment(
        self,
        ticket_id: UUID,
        author_id: UUID,
        content: str,
        is_internal: bool = False,
    ) -> TicketComment:
        content = _required_text(content, "Comment")
        await self.get_ticket(ticket_id)
        action = TicketHistoryAction.INTERNAL_COMMENT_ADDED if is_internal else TicketHistoryAction.COMMENT_ADDED
        comment, _ = await self.gateway.insert(
            [
                TicketComment(ticket_id=ticket_id, user_id=author_id, content=content, is_internal=is_internal),
                history_entry(ticket_id, author_id, action),
            ]
        )
        return comment

    async def list_comments(self, ticket_id: UUID, include_internal: bool = False) -> List[TicketComment]:
        await self.get_ticket(ticket_id)
        filters = [TicketComment.ticket_id == ticket_id]
        if not include_internal:
            filters.append(TicketComment.is_internal == False)
        return await self.gateway.select(TicketComment, *filters, order_by=[TicketComment.created_at])

    # === OBSERVERS ===

    async def list_observers(self, ticket_id: UUID) -> List[TicketObserver]:
        return await self.gateway.select(
            TicketObserver,
            TicketObserver.ticket_id == ticket_id,
            order_by=[TicketObserver.created_at],
        )

    async def add_observer(self, ticket_id: UUID, user_id: UUID, actor_id: Optional[UUID]) -> TicketObserver:
        await self.get_ticket(ticket_id)
        user = await self.gateway.get(User, user_id)
        if not user:
            raise NotFound("User", user_id)

        observers = await self.list_observers(ticket_id)
        if any(observer.user_id == user_id for observer in observers):
            raise ValidationError(f"{user.email} is already observing this ticket")

        observer, _ = await self.gateway.insert(
            [
                TicketObserver(ticket_id=ticket_id, user_id=user_id),
                history_entry(
                    ticket_id, actor_id, TicketHistoryAction.OBSERVER_ADDED, new_value=user.full_name or user.email
                ),
            ]
        )
        return observer

    async def remove_observer(self, ticket_id: UUID, user_id: UUID, actor_id: Optional[UUID]) -> None:
        await self.get_ticket(ticket_id)
        user = await self.gateway.get(User, user_id)
        removed = await self.gateway.delete(
            TicketObserver,
            TicketObserver.ticket_id == ticket_id,
            TicketObserver.user_id == user_id,
            with_rows=[
                history_entry(
                    ticket_id,
                    actor_id,
                    TicketHistoryAction.OBSERVER_REMOVED,
                    old_value=(user.full_name or user.email) if user else str(user_id),
                )
            ],
        )
        if not removed:
            raise NotFound("Observer", user_id)

    # === HISTORY & CUSTOM VALUES ===

    async def list_history(self, ticket_id: UUID) -> List[TicketHistory]:
        """History entries newest first."""
        await self.get_ticket(ticket_id)
        return await self.gateway.select(
            TicketHistory,
            TicketHistory.ticket_id == ticket_id,
            order_by=[TicketHistory.created_at.desc()],
        )

    async def get_custom_values(self, ticket_id: UUID) -> Dict[UUID, str]:
        await self.get_ticket(ticket_id)
        return await self.fields.get_values(CustomFieldEntity.TICKET, ticket_id)

    async def save_custom_values(self, ticket_id: UUID, values: Mapping[UUID, object]) -> Dict[UUID, str]:
        await self.get_ticket(ticket_id)
        return await self.fields.save_values(CustomFieldEntity.TICKET, ticket_id, values)
