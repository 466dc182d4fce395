from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import or_

from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Client, CustomFieldEntity
from sacdesk.services.custom_fields import CustomFieldEngine

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "document", "email", "phone", "city", "state", "address", "notes", "is_active")


def search_filter(term: str):
    """Case-insensitive substring match on name, document or email."""
    pattern = f"%{term.strip()}%"
    return or_(Client.name.ilike(pattern), Client.document.ilike(pattern), Client.email.ilike(pattern))


class ClientDirectory:
    def __init__(self, gateway: PersistenceGateway, fields: Optional[CustomFieldEngine] = None):
        self.gateway = gateway
        self.fields = fields or CustomFieldEngine(gateway)

    async def get_client(self, client_id: UUID) -> Client:
        client = await self.gateway.get(Client, client_id)
        if not client:
            raise NotFound("Client", client_id)
        return client

    async def list_clients(
        self,
        search: Optional[str] = None,
        active_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[Client]:
        filters = []
        if search and search.strip():
            filters.append(search_filter(search))
        if active_only:
            filters.append(Client.is_active == True)
        return await self.gateway.select(Client, *filters, order_by=[Client.name], limit=limit)

    async def create_client(
        self,
        data: Mapping[str, Any],
        created_by: Optional[UUID] = None,
        custom_values: Optional[Mapping[UUID, object]] = None,
    ) -> Client:
        values = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
        name = (values.get("name") or "").strip()
        if not name:
            raise ValidationError("Client name is required")
        values["name"] = name
        await self.fields.prepare_values(CustomFieldEntity.CLIENT, custom_values or {})

        client = await self.gateway.insert(Client(**values, created_by=created_by))
        if custom_values:
            await self.fields.save_values(CustomFieldEntity.CLIENT, client.id, custom_values)
        logger.info(f"Client created: {client.name}")
        return client

    async def update_client(self, client_id: UUID, patch: Mapping[str, Any]) -> Client:
        values = {key: value for key, value in patch.items() if key in EDITABLE_FIELDS}
        if "name" in values:
            if not values["name"] or not values["name"].strip():
                raise ValidationError("Client name is required")
            values["name"] = values["name"].strip()
        await self.get_client(client_id)
        updated = await self.gateway.update(
            Client,
            {**values, "updated_at": datetime.utcnow()},
            Client.id == client_id,
        )
        if not updated:
            raise NotFound("Client", client_id)
        return updated[0]

    async def get_custom_values(self, client_id: UUID) -> Dict[UUID, str]:
        await self.get_client(client_id)
        return await self.fields.get_values(CustomFieldEntity.CLIENT, client_id)

    async def save_custom_values(self, client_id: UUID, values: Mapping[UUID, object]) -> Dict[UUID, str]:
        """Replace every stored value of the client with the non-empty ``values``."""
        await self.get_client(client_id)
        return await self.fields.save_values(CustomFieldEntity.CLIENT, client_id, values)
