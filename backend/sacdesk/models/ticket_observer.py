from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class TicketObserver(SQLModel, table=True):
    """A user watching a ticket."""

    __tablename__ = "ticket_observers"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    ticket_id: UUID = Field(foreign_key="tickets.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
