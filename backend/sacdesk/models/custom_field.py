from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import Field, SQLModel


class CustomFieldType:
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    CHECKBOX = "checkbox"

    ALL = (TEXT, TEXTAREA, NUMBER, DATE, SELECT, CHECKBOX)


class CustomFieldEntity:
    TICKET = "ticket"
    CLIENT = "client"

    ALL = (TICKET, CLIENT)


class CustomField(SQLModel, table=True):
    """Admin-defined extra attribute of a ticket or a client."""

    __tablename__ = "custom_fields"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(max_length=100)
    entity_type: str = Field(default=CustomFieldEntity.TICKET, max_length=20, index=True)
    field_type: str = Field(default=CustomFieldType.TEXT, max_length=20)
    options: Optional[List[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    is_required: bool = Field(default=False)
    is_active: bool = Field(default=True, index=True)
    display_order: int = Field(default=0)
    created_by: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class CustomFieldValue(SQLModel, table=True):
    """String-encoded value of one custom field for one ticket or client."""

    __tablename__ = "custom_field_values"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "field_id", name="uq_custom_field_value"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    entity_type: str = Field(max_length=20, index=True)
    entity_id: UUID = Field(index=True)
    field_id: UUID = Field(foreign_key="custom_fields.id", index=True)
    value: str = Field(max_length=5000)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
