from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class TicketHistoryAction:
    """Action labels written to the audit log."""
    CREATED = "ticket created"
    CREATED_VIA_LANDING_PAGE = "ticket created via landing page"
    STAGE_CHANGED = "stage changed"
    FIELD_CHANGED = "{label} changed"
    COMMENT_ADDED = "comment added"
    INTERNAL_COMMENT_ADDED = "internal comment added"
    OBSERVER_ADDED = "observer added"
    OBSERVER_REMOVED = "observer removed"
    ATTACHMENT_ADDED = "attachment added"
    ATTACHMENT_REMOVED = "attachment removed"


class TicketHistory(SQLModel, table=True):
    """Append-only audit entry of a ticket. Never updated or deleted."""

    __tablename__ = "ticket_history"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    ticket_id: UUID = Field(foreign_key="tickets.id", index=True)
    # Null for system actions
    user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True, index=True)
    action: str = Field(max_length=100, index=True)
    field_name: Optional[str] = Field(default=None, max_length=50)
    old_value: Optional[str] = Field(default=None, max_length=5000)
    new_value: Optional[str] = Field(default=None, max_length=5000)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)
