from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Resource:
    TICKETS = "tickets"
    CLIENTS = "clients"
    REPORTS = "reports"
    USERS = "users"
    CUSTOM_FIELDS = "custom_fields"
    WORKFLOW_STAGES = "workflow_stages"
    LANDING_PAGES = "landing_pages"
    PERMISSIONS = "permissions"
    SYSTEM_LOGS = "system_logs"

    ALL = (
        TICKETS,
        CLIENTS,
        REPORTS,
        USERS,
        CUSTOM_FIELDS,
        WORKFLOW_STAGES,
        LANDING_PAGES,
        PERMISSIONS,
        SYSTEM_LOGS,
    )


class Permission(SQLModel, table=True):
    """CRUD grants of one role on one resource."""

    __tablename__ = "permissions"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    role: str = Field(max_length=50, index=True)
    resource: str = Field(max_length=50, index=True)
    can_create: bool = Field(default=False)
    can_read: bool = Field(default=True)
    can_update: bool = Field(default=False)
    can_delete: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
