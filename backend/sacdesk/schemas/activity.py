from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ActivityEntryRead(BaseModel):
    id: UUID
    ticket_id: UUID
    ticket_number: int
    ticket_title: str
    user_id: Optional[UUID] = None
    user_name: str
    action: str
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SystemLogRead(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    user_name: str
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[dict] = None
    ip_address: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskRead(BaseModel):
    id: UUID
    number: int
    title: str
    stage: str
    priority: str
    deadline: Optional[datetime] = None
    client_name: Optional[str] = None
    type: str

    model_config = ConfigDict(from_attributes=True)
