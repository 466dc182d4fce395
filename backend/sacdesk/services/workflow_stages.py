"""Workflow stage registry: the ordered, admin-configurable set of ticket stages."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sacdesk.core.config import settings
from sacdesk.core.exceptions import NotFound, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import WorkflowStage

logger = logging.getLogger(__name__)

# (slug, name, color) of the system stages, in board order
DEFAULT_STAGES = [
    ("open", "Open", "bg-blue-500"),
    ("in_progress", "In Progress", "bg-yellow-500"),
    ("waiting_client", "Waiting on Client", "bg-purple-500"),
    ("waiting_internal", "Waiting Internal", "bg-orange-500"),
    ("resolved", "Resolved", "bg-green-500"),
    ("cancelled", "Cancelled", "bg-gray-500"),
]

DEFAULT_COLOR = "bg-blue-500"

DIRECTIONS = ("up", "down")


def generate_slug(name: str) -> str:
    """Lowercase, whitespace runs to underscores, everything else non-alphanumeric dropped."""
    slug = re.sub(r"\s+", "_", name.strip().lower())
    return re.sub(r"[^a-z0-9_]", "", slug)


def check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValidationError(f"Direction must be one of {', '.join(DIRECTIONS)}")


def adjacent_index(index: int, direction: str, size: int) -> Optional[int]:
    """Index of the neighbour in ``direction``, or None at the boundary."""
    check_direction(direction)
    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= size:
        return None
    return target


class WorkflowStageRegistry:
    """Authoritative list of valid ticket stages."""

    CACHE_KEY = "workflow_stages:active"

    def __init__(self, gateway: PersistenceGateway, cache=None, cache_ttl: Optional[int] = None):
        self.gateway = gateway
        self.cache = cache
        self.cache_ttl = cache_ttl or settings.STAGE_CACHE_TTL

    @property
    def resolved_slug(self) -> str:
        return settings.RESOLVED_STAGE_SLUG

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.delete(self.CACHE_KEY)

    async def list_active_stages(self) -> List[WorkflowStage]:
        """Active stages by display order; these are the Kanban columns."""
        if self.cache is not None:
            cached = self.cache.get(self.CACHE_KEY)
            if cached is not None:
                return [WorkflowStage.model_validate(item) for item in cached]

        stages = await self.gateway.select(
            WorkflowStage,
            WorkflowStage.is_active == True,
            order_by=[WorkflowStage.display_order, WorkflowStage.name],
        )
        if self.cache is not None:
            self.cache.set(
                self.CACHE_KEY,
                [stage.model_dump(mode="json") for stage in stages],
                ttl=self.cache_ttl,
            )
        return stages

    async def list_stages(self, include_inactive: bool = True) -> List[WorkflowStage]:
        if not include_inactive:
            return await self.list_active_stages()
        return await self.gateway.select(
            WorkflowStage,
            order_by=[WorkflowStage.display_order, WorkflowStage.name],
        )

    async def get_stage(self, stage_id: UUID) -> WorkflowStage:
        stage = await self.gateway.get(WorkflowStage, stage_id)
        if not stage:
            raise NotFound("Workflow stage", stage_id)
        return stage

    async def get_by_slug(self, slug: str) -> Optional[WorkflowStage]:
        rows = await self.gateway.select(WorkflowStage, WorkflowStage.slug == slug, limit=1)
        return rows[0] if rows else None

    async def get_active_by_slug(self, slug: str) -> WorkflowStage:
        """Stage a ticket may move into; unknown or inactive slugs are rejected."""
        stage = await self.get_by_slug(slug)
        if not stage:
            raise NotFound("Workflow stage", slug)
        if not stage.is_active:
            raise ValidationError(f"Workflow stage '{slug}' is inactive")
        return stage

    async def default_stage(self) -> WorkflowStage:
        """First active stage; new tickets start here."""
        stages = await self.list_active_stages()
        if not stages:
            raise ValidationError("No active workflow stage is configured")
        return stages[0]

    async def create_stage(
        self,
        name: str,
        color: Optional[str] = None,
        slug: Optional[str] = None,
        created_by: Optional[UUID] = None,
    ) -> WorkflowStage:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Stage name is required")
        slug = generate_slug(slug or name)
        if not slug:
            raise ValidationError("Stage name must contain letters or digits")
        if await self.get_by_slug(slug):
            raise ValidationError(f"A stage with slug '{slug}' already exists")

        existing = await self.gateway.select(WorkflowStage, columns=["display_order"])
        next_order = max((row["display_order"] for row in existing), default=-1) + 1

        stage = await self.gateway.insert(
            WorkflowStage(
                name=name,
                slug=slug,
                color=color or DEFAULT_COLOR,
                display_order=next_order,
                created_by=created_by,
            )
        )
        self._invalidate()
        logger.info(f"Workflow stage created: {slug} at order {next_order}")
        return stage

    async def rename_or_recolor(
        self,
        stage_id: UUID,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> WorkflowStage:
        stage = await self.get_stage(stage_id)
        if stage.is_default:
            raise ValidationError("System stages cannot be edited")

        patch = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Stage name is required")
            patch["name"] = name.strip()
        if color is not None:
            patch["color"] = color
        if not patch:
            return stage

        patch["updated_at"] = datetime.utcnow()
        updated = await self.gateway.update(WorkflowStage, patch, WorkflowStage.id == stage_id)
        if not updated:
            raise NotFound("Workflow stage", stage_id)
        self._invalidate()
        return updated[0]

    async def reorder(self, stage_id: UUID, direction: str) -> List[WorkflowStage]:
        """Swap display order with the adjacent stage; no-op at either end.

        Both rows change in one transaction.
        """
        check_direction(direction)
        stages = await self.list_stages()
        index = next((i for i, s in enumerate(stages) if s.id == stage_id), None)
        if index is None:
            raise NotFound("Workflow stage", stage_id)

        target = adjacent_index(index, direction, len(stages))
        if target is None:
            return stages

        current, other = stages[index], stages[target]
        now = datetime.utcnow()
        await self.gateway.update_rows(
            WorkflowStage,
            [
                (current.id, {"display_order": other.display_order, "updated_at": now}),
                (other.id, {"display_order": current.display_order, "updated_at": now}),
            ],
        )
        self._invalidate()
        return await self.list_stages()

    async def set_active(self, stage_id: UUID, active: bool) -> WorkflowStage:
        # System stages may still be toggled
        await self.get_stage(stage_id)
        updated = await self.gateway.update(
            WorkflowStage,
            {"is_active": active, "updated_at": datetime.utcnow()},
            WorkflowStage.id == stage_id,
        )
        if not updated:
            raise NotFound("Workflow stage", stage_id)
        self._invalidate()
        return updated[0]

    async def activate(self, stage_id: UUID) -> WorkflowStage:
        return await self.set_active(stage_id, True)

    async def deactivate(self, stage_id: UUID) -> WorkflowStage:
        return await self.set_active(stage_id, False)

    async def delete_stage(self, stage_id: UUID) -> None:
        """Remove a non-system stage. Tickets still pointing at its slug are left orphaned."""
        stage = await self.get_stage(stage_id)
        if stage.is_default:
            raise ValidationError("System stages cannot be deleted")

        await self.gateway.delete(WorkflowStage, WorkflowStage.id == stage_id)
        remaining = await self.list_stages()
        await self.gateway.update_rows(
            WorkflowStage,
            [(s.id, {"display_order": order}) for order, s in enumerate(remaining) if s.display_order != order],
        )
        self._invalidate()
        logger.info(f"Workflow stage deleted: {stage.slug}")
