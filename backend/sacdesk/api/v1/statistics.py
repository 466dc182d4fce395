from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from sacdesk.api.deps import RegistryDep, require
from sacdesk.db import GatewayDep
from sacdesk.models import Resource, User
from sacdesk.schemas import TicketStatistics
from sacdesk.services.statistics import ticket_statistics

router = APIRouter()


@router.get("/tickets", response_model=TicketStatistics)
async def get_ticket_statistics(
    gateway: GatewayDep,
    registry: RegistryDep,
    current_user: User = Depends(require(Resource.REPORTS, "read")),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
) -> TicketStatistics:
    """Ticket statistics over an optional creation period."""
    return await ticket_statistics(gateway, registry, date_from=date_from, date_to=date_to)
