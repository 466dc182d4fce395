from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TicketCommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    is_internal: bool = False


class TicketCommentRead(BaseModel):
    id: UUID
    ticket_id: UUID
    user_id: UUID
    content: str
    is_internal: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketHistoryRead(BaseModel):
    id: UUID
    ticket_id: UUID
    user_id: Optional[UUID] = None
    action: str
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketObserverCreate(BaseModel):
    user_id: UUID


class TicketObserverRead(BaseModel):
    id: UUID
    ticket_id: UUID
    user_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketAttachmentRead(BaseModel):
    id: UUID
    ticket_id: UUID
    uploaded_by: UUID
    original_filename: str
    file_size: int
    content_type: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
