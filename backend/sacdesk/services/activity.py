"""Cross-ticket activity feed built from the ticket history log."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sacdesk.core.config import settings
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Ticket, TicketHistory, User

logger = logging.getLogger(__name__)

MISSING_TICKET_TITLE = "Ticket not found"
SYSTEM_USER_NAME = "System"


@dataclass
class ActivityEntry:
    id: UUID
    ticket_id: UUID
    ticket_number: int
    ticket_title: str
    user_id: Optional[UUID]
    user_name: str
    action: str
    field_name: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    created_at: datetime

    def matches(self, term: str) -> bool:
        term = term.lower()
        return any(
            term in text.lower()
            for text in (self.ticket_title, str(self.ticket_number), self.user_name, self.action)
        )


async def recent_activity(
    gateway: PersistenceGateway,
    limit: int = settings.ACTIVITY_FEED_LIMIT,
    search: Optional[str] = None,
) -> List[ActivityEntry]:
    """Latest history entries of all tickets, newest first.

    Ticket and author labels are fetched with one batch query each. ``search``
    filters the fetched page by ticket title, ticket number, author or action.
    """
    rows = await gateway.select(
        TicketHistory,
        order_by=[TicketHistory.created_at.desc()],
        limit=limit,
    )
    tickets, users = await asyncio.gather(
        gateway.select_by_ids(Ticket, (row.ticket_id for row in rows), ["id", "number", "title"]),
        gateway.select_by_ids(User, (row.user_id for row in rows if row.user_id), ["id", "full_name", "email"]),
    )

    entries = []
    for row in rows:
        ticket = tickets.get(row.ticket_id)
        user = users.get(row.user_id) if row.user_id else None
        entries.append(
            ActivityEntry(
                id=row.id,
                ticket_id=row.ticket_id,
                ticket_number=ticket["number"] if ticket else 0,
                ticket_title=ticket["title"] if ticket else MISSING_TICKET_TITLE,
                user_id=row.user_id,
                user_name=(user["full_name"] or user["email"]) if user else SYSTEM_USER_NAME,
                action=row.action,
                field_name=row.field_name,
                old_value=row.old_value,
                new_value=row.new_value,
                created_at=row.created_at,
            )
        )

    term = (search or "").strip()
    if term:
        entries = [entry for entry in entries if entry.matches(term)]
    logger.debug(f"Activity feed: {len(entries)} of {len(rows)} entries")
    return entries
