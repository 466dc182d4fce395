from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class StageStats(BaseModel):
    stage: str
    label: str
    color: str
    count: int


class PriorityStats(BaseModel):
    priority: str
    label: str
    count: int


class AnalystStats(BaseModel):
    analyst_id: Optional[UUID] = None
    analyst_name: str
    total_count: int
    resolved_count: int


class TicketStatistics(BaseModel):
    total_tickets: int
    resolved_tickets: int
    avg_resolution_time_hours: Optional[float] = None
    by_stage: List[StageStats]
    by_priority: List[PriorityStats]
    by_analyst: List[AnalystStats]
    created_today: int
    created_this_week: int
    created_this_month: int
