from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sacdesk.models.custom_field import CustomFieldEntity, CustomFieldType


class CustomFieldCreate(BaseModel):
    name: str = Field(max_length=100)
    entity_type: Literal["ticket", "client"] = CustomFieldEntity.TICKET
    field_type: Literal["text", "textarea", "number", "date", "select", "checkbox"] = CustomFieldType.TEXT
    # A list, or one option per line
    options: Optional[List[str] | str] = None
    is_required: bool = False


class CustomFieldUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    field_type: Optional[Literal["text", "textarea", "number", "date", "select", "checkbox"]] = None
    options: Optional[List[str] | str] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None


class CustomFieldRead(BaseModel):
    id: UUID
    name: str
    entity_type: str
    field_type: str
    options: Optional[List[str]] = None
    is_required: bool
    is_active: bool
    display_order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FieldControl(BaseModel):
    """Input control a form renders for one custom field."""
    field_id: UUID
    label: str
    widget: Literal["input", "textarea", "select", "checkbox"]
    input_type: Optional[Literal["text", "number", "date"]] = None
    value: str = ""
    required: bool = False
    options: Optional[List[str]] = None
    checked: Optional[bool] = None


class CustomValuesPayload(BaseModel):
    values: Dict[UUID, str] = Field(default_factory=dict)


class ReorderRequest(BaseModel):
    direction: Literal["up", "down"]
