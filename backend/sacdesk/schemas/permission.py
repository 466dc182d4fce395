from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PermissionCreate(BaseModel):
    role: Literal["admin", "supervisor", "analyst", "user"]
    resource: str
    can_create: bool = False
    can_read: bool = True
    can_update: bool = False
    can_delete: bool = False


class PermissionUpdate(BaseModel):
    can_create: Optional[bool] = None
    can_read: Optional[bool] = None
    can_update: Optional[bool] = None
    can_delete: Optional[bool] = None


class PermissionRead(BaseModel):
    id: UUID
    role: str
    resource: str
    can_create: bool
    can_read: bool
    can_update: bool
    can_delete: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
