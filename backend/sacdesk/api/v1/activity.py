from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from sacdesk.api.deps import CurrentUser, SystemLogBookDep, require
from sacdesk.core.config import settings
from sacdesk.db import GatewayDep
from sacdesk.models import Resource, User
from sacdesk.schemas import ActivityEntryRead, SystemLogRead, TaskRead
from sacdesk.services.activity import recent_activity
from sacdesk.services.tasks import my_tasks

router = APIRouter()


@router.get("/history", response_model=List[ActivityEntryRead], tags=["history"])
async def list_recent_history(
    gateway: GatewayDep,
    current_user: User = Depends(require(Resource.TICKETS, "read")),
    search: Optional[str] = Query(None),
    limit: int = Query(settings.ACTIVITY_FEED_LIMIT, ge=1, le=500),
):
    """Latest changes across all tickets."""
    return await recent_activity(gateway, limit=limit, search=search)


@router.get("/tasks", response_model=List[TaskRead], tags=["tasks"])
async def list_my_tasks(gateway: GatewayDep, current_user: CurrentUser):
    """Open tickets assigned to or observed by the current user."""
    return await my_tasks(gateway, current_user.id)


@router.get("/system-logs", response_model=List[SystemLogRead], tags=["system-logs"])
async def list_system_logs(
    book: SystemLogBookDep,
    current_user: User = Depends(require(Resource.SYSTEM_LOGS, "read")),
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    limit: int = Query(settings.ACTIVITY_FEED_LIMIT, ge=1, le=500),
):
    return await book.list_logs(action=action, entity_type=entity_type, limit=limit)
