"""Personal task list: open tickets a user is assigned to or observes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sacdesk.core.config import settings
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Client, Ticket, TicketObserver

logger = logging.getLogger(__name__)


class TaskType:
    ASSIGNED = "assigned"
    OBSERVING = "observing"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"

    ALL = (ASSIGNED, OBSERVING, OVERDUE, UPCOMING)


@dataclass
class TaskEntry:
    id: UUID
    number: int
    title: str
    stage: str
    priority: str
    deadline: Optional[datetime]
    client_name: Optional[str]
    type: str


def classify(deadline: Optional[datetime], now: datetime) -> str:
    """Urgency of an assigned ticket from its deadline."""
    if deadline is None:
        return TaskType.ASSIGNED
    if deadline < now:
        return TaskType.OVERDUE
    if deadline < now + timedelta(days=settings.UPCOMING_DEADLINE_DAYS):
        return TaskType.UPCOMING
    return TaskType.ASSIGNED


def _deadline_order(ticket: Ticket):
    # Tickets without a deadline go last
    return (ticket.deadline is None, ticket.deadline or datetime.max, ticket.number)


async def my_tasks(
    gateway: PersistenceGateway,
    user_id: UUID,
    now: Optional[datetime] = None,
) -> List[TaskEntry]:
    """Assigned open tickets by deadline, then observed ones not already listed."""
    now = now or datetime.utcnow()
    open_stage = Ticket.stage.not_in(settings.CLOSED_STAGE_SLUGS)

    assigned, observed_ids = await asyncio.gather(
        gateway.select(Ticket, Ticket.analyst_id == user_id, open_stage),
        gateway.select(TicketObserver, TicketObserver.user_id == user_id, columns=["ticket_id"]),
    )
    assigned = sorted(assigned, key=_deadline_order)
    listed = {ticket.id for ticket in assigned}
    wanted = sorted({row["ticket_id"] for row in observed_ids} - listed, key=str)
    observed = []
    if wanted:
        observed = await gateway.select(
            Ticket,
            Ticket.id.in_(wanted),
            open_stage,
            order_by=[Ticket.number],
        )

    clients = await gateway.select_by_ids(
        Client,
        (ticket.client_id for ticket in [*assigned, *observed] if ticket.client_id),
        ["id", "name"],
    )

    def entry(ticket: Ticket, task_type: str) -> TaskEntry:
        client = clients.get(ticket.client_id) if ticket.client_id else None
        return TaskEntry(
            id=ticket.id,
            number=ticket.number,
            title=ticket.title,
            stage=ticket.stage,
            priority=ticket.priority,
            deadline=ticket.deadline,
            client_name=client["name"] if client else None,
            type=task_type,
        )

    tasks = [entry(ticket, classify(ticket.deadline, now)) for ticket in assigned]
    tasks.extend(entry(ticket, TaskType.OBSERVING) for ticket in observed)
    logger.debug(f"Task list for {user_id}: {len(assigned)} assigned, {len(observed)} observed")
    return tasks
