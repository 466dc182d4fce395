from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sacdesk.models.ticket import TicketPriority


class TicketBase(BaseModel):
    title: str = Field(max_length=255, min_length=1)
    description: str = Field(max_length=5000, min_length=1)
    priority: str = Field(default=TicketPriority.MEDIUM)
    client_id: Optional[UUID] = None
    analyst_id: Optional[UUID] = None
    deadline: Optional[datetime] = None
    nf_number: Optional[str] = Field(None, max_length=50)


class TicketCreate(TicketBase):
    # created_by is taken from current_user
    custom_values: Dict[UUID, str] = Field(default_factory=dict)


class TicketUpdate(BaseModel):
    """Partial edit; only the fields sent are compared and saved."""
    title: Optional[str] = Field(None, max_length=255, min_length=1)
    description: Optional[str] = Field(None, max_length=5000, min_length=1)
    priority: Optional[str] = None
    client_id: Optional[UUID] = None
    analyst_id: Optional[UUID] = None
    deadline: Optional[datetime] = None
    nf_number: Optional[str] = Field(None, max_length=50)


class TicketStageChange(BaseModel):
    stage: str = Field(min_length=1, max_length=100)


class TicketRead(TicketBase):
    id: UUID
    number: int
    stage: str
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
