from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class TicketPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    ALL = (LOW, MEDIUM, HIGH, URGENT)


class Ticket(SQLModel, table=True):
    """A customer support case (SAC)."""

    __tablename__ = "tickets"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    number: int = Field(unique=True, index=True)
    title: str = Field(max_length=255, index=True)
    description: str = Field(max_length=5000)
    priority: str = Field(default=TicketPriority.MEDIUM, index=True)
    # Slug of a workflow stage; not a hard foreign key so deleted stages leave orphans
    stage: str = Field(max_length=100, index=True)
    nf_number: Optional[str] = Field(default=None, max_length=50)
    deadline: Optional[datetime] = None
    client_id: Optional[UUID] = Field(default=None, foreign_key="clients.id", nullable=True, index=True)
    analyst_id: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True, index=True)
    created_by: UUID = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    resolved_at: Optional[datetime] = None

    def touch(self):
        """Updates the updated_at timestamp."""
        self.updated_at = datetime.utcnow()
