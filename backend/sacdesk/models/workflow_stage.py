from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class WorkflowStage(SQLModel, table=True):
    """One Kanban lane a ticket can occupy."""

    __tablename__ = "workflow_stages"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=100, unique=True, index=True)
    color: str = Field(default="bg-blue-500", max_length=30)
    display_order: int = Field(default=0, index=True)
    is_active: bool = Field(default=True, index=True)
    # System stages cannot be edited or deleted
    is_default: bool = Field(default=False)
    created_by: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
