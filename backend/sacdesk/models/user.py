from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Role:
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    ANALYST = "analyst"
    USER = "user"

    ALL = (ADMIN, SUPERVISOR, ANALYST, USER)


class User(SQLModel, table=True):
    """Staff member who works tickets."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    email: str = Field(index=True, unique=True, max_length=255)
    full_name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    department: Optional[str] = Field(default=None, max_length=255)
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    hashed_password: str = Field(max_length=255)
    is_active: bool = Field(default=True)
    role: str = Field(default=Role.USER, max_length=50)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
