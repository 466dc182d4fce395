"""Administrative audit trail of logins and configuration changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from sacdesk.core.config import settings
from sacdesk.core.exceptions import PersistenceFailure, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import SystemLog, SystemLogAction, User

logger = logging.getLogger(__name__)

SYSTEM_USER_NAME = "System"


@dataclass
class SystemLogEntry:
    id: UUID
    user_id: Optional[UUID]
    user_name: str
    action: str
    entity_type: str
    entity_id: Optional[str]
    details: Optional[dict]
    ip_address: Optional[str]
    created_at: datetime


class SystemLogBook:
    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    async def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Any = None,
        user_id: Optional[UUID] = None,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[SystemLog]:
        """Append an entry after the action it describes has been committed.

        A failed write is logged and returns None; the action itself stands.
        """
        if action not in SystemLogAction.ALL:
            raise ValidationError(f"Log action must be one of {', '.join(SystemLogAction.ALL)}")
        entry = SystemLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details,
            ip_address=ip_address,
        )
        try:
            return await self.gateway.insert(entry)
        except PersistenceFailure as exc:
            logger.error(f"System log entry {action} {entity_type} {entity_id} not written: {exc.message}")
            return None

    async def list_logs(
        self,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        limit: int = settings.ACTIVITY_FEED_LIMIT,
    ) -> List[SystemLogEntry]:
        """Newest entries first, with author names from one batch query."""
        filters = []
        if action:
            filters.append(SystemLog.action == action)
        if entity_type:
            filters.append(SystemLog.entity_type == entity_type)
        rows = await self.gateway.select(
            SystemLog,
            *filters,
            order_by=[SystemLog.created_at.desc()],
            limit=limit,
        )
        users = await self.gateway.select_by_ids(
            User, (row.user_id for row in rows if row.user_id), ["id", "full_name", "email"]
        )

        entries = []
        for row in rows:
            user = users.get(row.user_id) if row.user_id else None
            entries.append(
                SystemLogEntry(
                    id=row.id,
                    user_id=row.user_id,
                    user_name=(user["full_name"] or user["email"]) if user else SYSTEM_USER_NAME,
                    action=row.action,
                    entity_type=row.entity_type,
                    entity_id=row.entity_id,
                    details=row.details,
                    ip_address=row.ip_address,
                    created_at=row.created_at,
                )
            )
        return entries


class AuditTrail:
    """System log writer bound to the acting user and their address."""

    def __init__(self, book: SystemLogBook, user_id: Optional[UUID], ip_address: Optional[str]):
        self.book = book
        self.user_id = user_id
        self.ip_address = ip_address

    async def __call__(
        self,
        action: str,
        entity_type: str,
        entity_id: Any = None,
        details: Optional[dict] = None,
    ) -> Optional[SystemLog]:
        return await self.book.record(
            action,
            entity_type,
            entity_id,
            user_id=self.user_id,
            details=details,
            ip_address=self.ip_address,
        )
