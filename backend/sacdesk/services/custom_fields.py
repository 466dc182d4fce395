"""
Custom field engine.

Administrators extend tickets and clients with typed fields. Values are
stored as strings, one row per (entity, field). Saving follows a per-entity
policy:

* clients: replace-all. Existing rows are dropped and the non-empty values
  re-inserted in one transaction, so clearing a field removes its row.
* tickets: upsert. Non-empty values update the existing row or insert a new
  one; empty values leave whatever is stored untouched.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import CustomField, CustomFieldEntity, CustomFieldType, CustomFieldValue
from sacdesk.schemas.custom_field import FieldControl
from sacdesk.services.workflow_stages import adjacent_index, check_direction

logger = logging.getLogger(__name__)

REPLACE_ALL = "replace_all"
UPSERT = "upsert"

SAVE_POLICIES = {
    CustomFieldEntity.CLIENT: REPLACE_ALL,
    CustomFieldEntity.TICKET: UPSERT,
}


def normalize_options(options: Optional[Iterable[str] | str]) -> List[str]:
    """Options as a clean list; a string is read as one option per line."""
    if options is None:
        return []
    if isinstance(options, str):
        options = options.splitlines()
    return [option.strip() for option in options if option and option.strip()]


def render_field(field: CustomField, value: Optional[str]) -> FieldControl:
    """Map a field definition and its stored string to an input control."""
    current = value or ""
    control = FieldControl(
        field_id=field.id,
        label=field.name,
        widget="input",
        value=current,
        required=field.is_required,
    )
    if field.field_type == CustomFieldType.TEXTAREA:
        control.widget = "textarea"
    elif field.field_type == CustomFieldType.NUMBER:
        control.input_type = "number"
    elif field.field_type == CustomFieldType.DATE:
        control.input_type = "date"
    elif field.field_type == CustomFieldType.SELECT:
        control.widget = "select"
        control.options = list(field.options or [])
    elif field.field_type == CustomFieldType.CHECKBOX:
        control.widget = "checkbox"
        control.checked = current == "true"
        control.value = "true" if control.checked else "false"
    else:
        control.input_type = "text"
    return control


def render_form(fields: Iterable[CustomField], values: Mapping[UUID, str]) -> List[FieldControl]:
    return [render_field(field, values.get(field.id)) for field in fields]


def coerce_value(field: CustomField, raw: object) -> str:
    """String encoding of ``raw`` for ``field``; empty string means no value."""
    if raw is None:
        return ""
    if field.field_type == CustomFieldType.CHECKBOX:
        if isinstance(raw, bool):
            return "true" if raw else "false"
        text = str(raw).strip().lower()
        if text and text not in ("true", "false"):
            raise ValidationError(f"{field.name}: expected true or false")
        return text

    text = str(raw)
    if not text.strip():
        return ""
    if field.field_type == CustomFieldType.NUMBER:
        try:
            float(text)
        except ValueError:
            raise ValidationError(f"{field.name}: '{text}' is not a number") from None
        return text.strip()
    if field.field_type == CustomFieldType.DATE:
        try:
            date.fromisoformat(text.strip())
        except ValueError:
            raise ValidationError(f"{field.name}: '{text}' is not an ISO date") from None
        return text.strip()
    if field.field_type == CustomFieldType.SELECT and text not in (field.options or []):
        raise ValidationError(f"{field.name}: '{text}' is not one of the options")
    return text


def ensure_required(
    fields: Iterable[CustomField],
    values: Mapping[UUID, str],
    existing: Optional[Mapping[UUID, str]] = None,
) -> None:
    existing = existing or {}
    missing = [
        field.name
        for field in fields
        if field.is_required and not (values.get(field.id) or existing.get(field.id))
    ]
    if missing:
        raise ValidationError(f"Required fields missing: {', '.join(missing)}")


def _check_entity_type(entity_type: str) -> None:
    if entity_type not in CustomFieldEntity.ALL:
        raise ValidationError(f"Entity type must be one of {', '.join(CustomFieldEntity.ALL)}")


class CustomFieldEngine:
    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    # === DEFINITIONS ===

    async def get_field(self, field_id: UUID) -> CustomField:
        field = await self.gateway.get(CustomField, field_id)
        if not field:
            raise NotFound("Custom field", field_id)
        return field

    async def list_fields(
        self,
        entity_type: Optional[str] = None,
        include_inactive: bool = True,
    ) -> List[CustomField]:
        filters = []
        if entity_type is not None:
            _check_entity_type(entity_type)
            filters.append(CustomField.entity_type == entity_type)
        if not include_inactive:
            filters.append(CustomField.is_active == True)
        return await self.gateway.select(
            CustomField,
            *filters,
            order_by=[CustomField.display_order, CustomField.name],
        )

    async def list_active_fields(self, entity_type: str) -> List[CustomField]:
        return await self.list_fields(entity_type, include_inactive=False)

    async def define_field(
        self,
        entity_type: str,
        name: str,
        field_type: str,
        options: Optional[Iterable[str] | str] = None,
        required: bool = False,
        created_by: Optional[UUID] = None,
    ) -> CustomField:
        _check_entity_type(entity_type)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Field name is required")
        clean_options = self._validate_type(field_type, options)

        # Display order is one global sequence across entity types
        existing = await self.gateway.select(CustomField, columns=["display_order"])
        next_order = max((row["display_order"] for row in existing), default=-1) + 1

        field = await self.gateway.insert(
            CustomField(
                name=name,
                entity_type=entity_type,
                field_type=field_type,
                options=clean_options,
                is_required=required,
                display_order=next_order,
                created_by=created_by,
            )
        )
        logger.info(f"Custom field defined: {entity_type}.{name} ({field_type})")
        return field

    def _validate_type(self, field_type: str, options) -> Optional[List[str]]:
        if field_type not in CustomFieldType.ALL:
            raise ValidationError(f"Field type must be one of {', '.join(CustomFieldType.ALL)}")
        if field_type != CustomFieldType.SELECT:
            return None
        clean = normalize_options(options)
        if not clean:
            raise ValidationError("Select fields need at least one option")
        return clean

    async def update_field(
        self,
        field_id: UUID,
        name: Optional[str] = None,
        field_type: Optional[str] = None,
        options: Optional[Iterable[str] | str] = None,
        required: Optional[bool] = None,
    ) -> CustomField:
        field = await self.get_field(field_id)
        patch: dict = {"updated_at": datetime.utcnow()}
        if name is not None:
            if not name.strip():
                raise ValidationError("Field name is required")
            patch["name"] = name.strip()
        if field_type is not None or options is not None:
            new_type = field_type or field.field_type
            patch["field_type"] = new_type
            patch["options"] = self._validate_type(
                new_type, options if options is not None else field.options
            )
        if required is not None:
            patch["is_required"] = required

        updated = await self.gateway.update(CustomField, patch, CustomField.id == field_id)
        if not updated:
            raise NotFound("Custom field", field_id)
        return updated[0]

    async def set_active(self, field_id: UUID, active: bool) -> CustomField:
        await self.get_field(field_id)
        updated = await self.gateway.update(
            CustomField,
            {"is_active": active, "updated_at": datetime.utcnow()},
            CustomField.id == field_id,
        )
        return updated[0]

    async def delete_field(self, field_id: UUID) -> None:
        field = await self.get_field(field_id)
        await self.gateway.delete(CustomFieldValue, CustomFieldValue.field_id == field_id)
        await self.gateway.delete(CustomField, CustomField.id == field_id)
        remaining = await self.list_fields()
        await self.gateway.update_rows(
            CustomField,
            [(f.id, {"display_order": order}) for order, f in enumerate(remaining) if f.display_order != order],
        )
        logger.info(f"Custom field deleted: {field.entity_type}.{field.name}")

    async def reorder(self, field_id: UUID, direction: str) -> List[CustomField]:
        """Swap display order with the neighbouring field of the same entity type.

        The neighbour never depends on which listing the request came from.
        """
        check_direction(direction)
        field = await self.get_field(field_id)
        siblings = await self.list_fields(field.entity_type)
        index = next(i for i, f in enumerate(siblings) if f.id == field_id)
        target = adjacent_index(index, direction, len(siblings))
        if target is None:
            return siblings

        other = siblings[target]
        await self.gateway.update_rows(
            CustomField,
            [
                (field.id, {"display_order": other.display_order}),
                (other.id, {"display_order": field.display_order}),
            ],
        )
        return await self.list_fields(field.entity_type)

    # === VALUES ===

    async def get_values(self, entity_type: str, entity_id: UUID) -> Dict[UUID, str]:
        rows = await self.gateway.select(
            CustomFieldValue,
            CustomFieldValue.entity_type == entity_type,
            CustomFieldValue.entity_id == entity_id,
        )
        return {row.field_id: row.value for row in rows}

    async def render(self, entity_type: str, entity_id: Optional[UUID] = None) -> List[FieldControl]:
        """Controls for every active field of ``entity_type``, filled with stored values."""
        fields = await self.list_active_fields(entity_type)
        values = await self.get_values(entity_type, entity_id) if entity_id else {}
        return render_form(fields, values)

    async def prepare_values(
        self,
        entity_type: str,
        values: Mapping[UUID, object],
        existing: Optional[Mapping[UUID, str]] = None,
        enforce_required: bool = True,
    ) -> Dict[UUID, str]:
        """Coerce submitted values and enforce required fields, before any write.

        Forms that never render custom fields (the public intake page) pass
        ``enforce_required=False``; submitted values are still coerced.
        """
        _check_entity_type(entity_type)
        fields = {field.id: field for field in await self.list_active_fields(entity_type)}
        prepared: Dict[UUID, str] = {}
        for raw_id, raw in values.items():
            field_id = raw_id if isinstance(raw_id, UUID) else UUID(str(raw_id))
            field = fields.get(field_id)
            if not field:
                raise ValidationError(f"Unknown {entity_type} field {field_id}")
            prepared[field_id] = coerce_value(field, raw)
        if enforce_required:
            ensure_required(fields.values(), prepared, existing)
        return prepared

    async def save_values(
        self,
        entity_type: str,
        entity_id: UUID,
        values: Mapping[UUID, object],
    ) -> Dict[UUID, str]:
        _check_entity_type(entity_type)
        if SAVE_POLICIES[entity_type] == REPLACE_ALL:
            await self._replace_all(entity_type, entity_id, values)
        else:
            await self._upsert(entity_type, entity_id, values)
        return await self.get_values(entity_type, entity_id)

    async def _replace_all(self, entity_type: str, entity_id: UUID, values) -> None:
        prepared = await self.prepare_values(entity_type, values)
        rows = [
            CustomFieldValue(entity_type=entity_type, entity_id=entity_id, field_id=field_id, value=value)
            for field_id, value in prepared.items()
            if value
        ]
        await self.gateway.replace(
            CustomFieldValue,
            [CustomFieldValue.entity_type == entity_type, CustomFieldValue.entity_id == entity_id],
            rows,
        )
        logger.debug(f"Replaced {entity_type} {entity_id} custom values: {len(rows)} rows")

    async def _upsert(self, entity_type: str, entity_id: UUID, values) -> None:
        stored = await self.gateway.select(
            CustomFieldValue,
            CustomFieldValue.entity_type == entity_type,
            CustomFieldValue.entity_id == entity_id,
        )
        existing = {row.field_id: row for row in stored}
        prepared = await self.prepare_values(
            entity_type, values, existing={fid: row.value for fid, row in existing.items()}
        )

        now = datetime.utcnow()
        updates = []
        inserts = []
        for field_id, value in prepared.items():
            if not value:
                continue
            row = existing.get(field_id)
            if row is not None:
                if row.value != value:
                    updates.append((row.id, {"value": value, "updated_at": now}))
            else:
                inserts.append(
                    CustomFieldValue(entity_type=entity_type, entity_id=entity_id, field_id=field_id, value=value)
                )
        if updates:
            await self.gateway.update_rows(CustomFieldValue, updates)
        if inserts:
            await self.gateway.insert(inserts)
        logger.debug(f"Upserted {entity_type} {entity_id} custom values: {len(updates)} updated, {len(inserts)} new")
