from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class SystemLogAction:
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    VIEW = "view"

    ALL = (CREATE, UPDATE, DELETE, LOGIN, LOGOUT, VIEW)


class SystemLog(SQLModel, table=True):
    """Administrative audit trail: logins and changes to configuration records."""

    __tablename__ = "system_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    # Null for actions without an authenticated user
    user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True, index=True)
    action: str = Field(max_length=20, index=True)
    entity_type: str = Field(max_length=50, index=True)
    entity_id: Optional[str] = Field(default=None, max_length=100)
    details: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    ip_address: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)
