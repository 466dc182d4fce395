from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class LandingPage(SQLModel, table=True):
    """Public intake form through which clients open tickets."""

    __tablename__ = "landing_pages"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    slug: str = Field(max_length=100, unique=True, index=True)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    welcome_message: Optional[str] = Field(default=None, max_length=2000)
    success_message: Optional[str] = Field(default=None, max_length=2000)
    # Receives the tickets as creator and analyst
    responsible_id: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True)
    is_active: bool = Field(default=True)
    created_by: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
