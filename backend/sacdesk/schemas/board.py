from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BoardCardRead(BaseModel):
    id: UUID
    number: int
    title: str
    stage: str
    priority: str
    created_at: datetime
    deadline: Optional[datetime] = None
    client_id: Optional[UUID] = None
    analyst_id: Optional[UUID] = None
    client_name: Optional[str] = None
    analyst_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BoardColumnRead(BaseModel):
    slug: str
    label: str
    color: str
    orphaned: bool = False
    cards: List[BoardCardRead]

    model_config = ConfigDict(from_attributes=True)


class BoardNoticeRead(BaseModel):
    level: str
    message: str

    model_config = ConfigDict(from_attributes=True)


class BoardMove(BaseModel):
    ticket_id: UUID
    # None drops the card outside every column
    stage: Optional[str] = None
    position: Optional[int] = Field(None, ge=0)


class BoardMoveResult(BaseModel):
    state: str
    ticket_id: UUID
    from_stage: str
    to_stage: Optional[str] = None
    notice: Optional[BoardNoticeRead] = None
    columns: List[BoardColumnRead]
