from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WorkflowStageCreate(BaseModel):
    name: str = Field(max_length=100)
    color: Optional[str] = Field(None, max_length=30)
    # Generated from the name when omitted
    slug: Optional[str] = Field(None, max_length=100)


class WorkflowStageUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=30)


class WorkflowStageRead(BaseModel):
    id: UUID
    name: str
    slug: str
    color: str
    display_order: int
    is_active: bool
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
