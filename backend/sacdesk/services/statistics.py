"""Ticket statistics for the reports dashboard."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Ticket, TicketPriority, User
from sacdesk.schemas.statistics import AnalystStats, PriorityStats, StageStats, TicketStatistics
from sacdesk.services.kanban import ORPHANED_COLOR, ORPHANED_LABEL
from sacdesk.services.workflow_stages import WorkflowStageRegistry

logger = logging.getLogger(__name__)

PRIORITY_LABELS = {
    TicketPriority.LOW: "Low",
    TicketPriority.MEDIUM: "Medium",
    TicketPriority.HIGH: "High",
    TicketPriority.URGENT: "Urgent",
}

UNASSIGNED_LABEL = "Unassigned"


async def ticket_statistics(
    gateway: PersistenceGateway,
    registry: WorkflowStageRegistry,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> TicketStatistics:
    filters = []
    if date_from:
        filters.append(Ticket.created_at >= date_from)
    if date_to:
        filters.append(Ticket.created_at <= date_to)

    now = now or datetime.utcnow()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = today_start - timedelta(days=now.weekday())
    month_start = today_start.replace(day=1)

    rows, stages, created_today, created_this_week, created_this_month = await asyncio.gather(
        gateway.select(
            Ticket,
            *filters,
            columns=["stage", "priority", "analyst_id", "created_at", "resolved_at"],
        ),
        registry.list_stages(),
        gateway.count(Ticket, Ticket.created_at >= today_start),
        gateway.count(Ticket, Ticket.created_at >= week_start),
        gateway.count(Ticket, Ticket.created_at >= month_start),
    )

    resolved_slug = registry.resolved_slug
    by_stage_count = Counter(row["stage"] for row in rows)
    by_priority_count = Counter(row["priority"] for row in rows)
    by_analyst_total = Counter(row["analyst_id"] for row in rows)
    by_analyst_resolved = Counter(row["analyst_id"] for row in rows if row["stage"] == resolved_slug)

    # Stages in board order, then slugs no stage row knows about
    by_stage = [
        StageStats(stage=stage.slug, label=stage.name, color=stage.color, count=by_stage_count.get(stage.slug, 0))
        for stage in stages
    ]
    known = {stage.slug for stage in stages}
    for slug in sorted(set(by_stage_count) - known):
        by_stage.append(StageStats(stage=slug, label=ORPHANED_LABEL, color=ORPHANED_COLOR, count=by_stage_count[slug]))

    by_priority = [
        PriorityStats(priority=priority, label=PRIORITY_LABELS[priority], count=by_priority_count.get(priority, 0))
        for priority in TicketPriority.ALL
    ]

    analyst_ids = [analyst_id for analyst_id in by_analyst_total if analyst_id is not None]
    names = {}
    if analyst_ids:
        users = await gateway.select(User, User.id.in_(analyst_ids), columns=["id", "full_name", "email"])
        names = {user["id"]: user["full_name"] or user["email"] for user in users}
    by_analyst = [
        AnalystStats(
            analyst_id=analyst_id,
            analyst_name=names.get(analyst_id, str(analyst_id)) if analyst_id else UNASSIGNED_LABEL,
            total_count=total,
            resolved_count=by_analyst_resolved.get(analyst_id, 0),
        )
        for analyst_id, total in by_analyst_total.most_common()
    ]

    resolution_hours = [
        (row["resolved_at"] - row["created_at"]).total_seconds() / 3600
        for row in rows
        if row["resolved_at"] is not None
    ]
    avg_resolution = round(sum(resolution_hours) / len(resolution_hours), 2) if resolution_hours else None

    return TicketStatistics(
        total_tickets=len(rows),
        resolved_tickets=by_stage_count.get(resolved_slug, 0),
        avg_resolution_time_hours=avg_resolution,
        by_stage=by_stage,
        by_priority=by_priority,
        by_analyst=by_analyst,
        created_today=created_today,
        created_this_week=created_this_week,
        created_this_month=created_this_month,
    )
