"""
Kanban board controller.

Groups tickets into one column per active workflow stage and mediates drag
based stage transitions. A drop runs as a small saga:

1. snapshot the card when the drag starts,
2. apply the new stage to the in-memory card (optimistic),
3. persist through the ticket lifecycle,
4. on any failure restore the snapshot.

The restore runs in a ``finally`` block so unexpected exceptions are
compensated too before they propagate.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set
from uuid import UUID

from sacdesk.core.exceptions import NotFound, SacDeskError, ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import Client, Ticket, User, WorkflowStage
from sacdesk.services.tickets import TicketLifecycle
from sacdesk.services.workflow_stages import WorkflowStageRegistry

logger = logging.getLogger(__name__)

ORPHANED_SLUG = "__orphaned__"
ORPHANED_LABEL = "Unknown stage"
ORPHANED_COLOR = "bg-gray-300"


class DragState:
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class BoardCard:
    id: UUID
    number: int
    title: str
    stage: str
    priority: str
    created_at: datetime
    deadline: Optional[datetime] = None
    client_id: Optional[UUID] = None
    analyst_id: Optional[UUID] = None
    client_name: Optional[str] = None
    analyst_name: Optional[str] = None
    pending: bool = False


@dataclass
class BoardColumn:
    slug: str
    label: str
    color: str
    cards: List[BoardCard] = field(default_factory=list)
    orphaned: bool = False


@dataclass
class BoardNotice:
    level: str
    message: str


@dataclass
class DropOutcome:
    state: str
    ticket_id: UUID
    from_stage: str
    to_stage: Optional[str]
    notice: Optional[BoardNotice] = None


@dataclass
class _Drag:
    ticket_id: UUID
    snapshot: BoardCard


class KanbanBoard:
    """In-memory view of the board for one actor."""

    # Bounded projection loaded for every card
    CARD_COLUMNS = (
        "id",
        "number",
        "title",
        "stage",
        "priority",
        "deadline",
        "created_at",
        "client_id",
        "analyst_id",
    )

    def __init__(
        self,
        gateway: PersistenceGateway,
        registry: WorkflowStageRegistry,
        lifecycle: TicketLifecycle,
        actor_id: Optional[UUID],
        notify: Optional[Callable[[BoardNotice], None]] = None,
    ):
        self.gateway = gateway
        self.registry = registry
        self.lifecycle = lifecycle
        self.actor_id = actor_id
        self.notify = notify
        self.state = DragState.IDLE
        self.stages: List[WorkflowStage] = []
        self.cards: Dict[UUID, BoardCard] = {}
        self.pending: Set[UUID] = set()
        self.notices: List[BoardNotice] = []
        # Within-column manual order per stage slug; memory only
        self._manual_order: Dict[str, List[UUID]] = {}
        self._drag: Optional[_Drag] = None

    # === LOADING ===

    async def load(self) -> List[BoardColumn]:
        stages, rows = await asyncio.gather(
            self.registry.list_active_stages(),
            self.gateway.select(
                Ticket,
                columns=list(self.CARD_COLUMNS),
                order_by=[Ticket.created_at.desc(), Ticket.number.desc()],
            ),
        )
        clients, analysts = await asyncio.gather(
            self.gateway.select_by_ids(Client, (r["client_id"] for r in rows if r["client_id"]), ["id", "name"]),
            self.gateway.select_by_ids(User, (r["analyst_id"] for r in rows if r["analyst_id"]), ["id", "full_name", "email"]),
        )

        self.stages = list(stages)
        self.cards = {}
        for row in rows:
            client = clients.get(row["client_id"])
            analyst = analysts.get(row["analyst_id"])
            self.cards[row["id"]] = BoardCard(
                **row,
                client_name=client["name"] if client else None,
                analyst_name=(analyst["full_name"] or analyst["email"]) if analyst else None,
            )
        self._manual_order = {}
        self._drag = None
        self.pending = set()
        self.state = DragState.IDLE
        logger.debug(f"Board loaded: {len(self.stages)} stages, {len(self.cards)} tickets")
        return self.columns()

    # === VIEW ===

    def _stage_by_slug(self) -> Dict[str, WorkflowStage]:
        return {stage.slug: stage for stage in self.stages}

    def _sorted(self, slug: str, cards: List[BoardCard]) -> List[BoardCard]:
        cards = sorted(cards, key=lambda c: (c.created_at, c.number), reverse=True)
        manual = self._manual_order.get(slug)
        if not manual:
            return cards
        rank = {ticket_id: index for index, ticket_id in enumerate(manual)}
        return sorted(cards, key=lambda c: rank.get(c.id, len(rank)))

    def columns(self) -> List[BoardColumn]:
        by_slug = self._stage_by_slug()
        grouped: Dict[str, List[BoardCard]] = {slug: [] for slug in by_slug}
        orphans: List[BoardCard] = []
        for card in self.cards.values():
            if card.stage in grouped:
                grouped[card.stage].append(card)
            else:
                orphans.append(card)

        columns = [
            BoardColumn(
                slug=stage.slug,
                label=stage.name,
                color=stage.color,
                cards=self._sorted(stage.slug, grouped[stage.slug]),
            )
            for stage in self.stages
        ]
        if orphans:
            columns.append(
                BoardColumn(
                    slug=ORPHANED_SLUG,
                    label=ORPHANED_LABEL,
                    color=ORPHANED_COLOR,
                    cards=self._sorted(ORPHANED_SLUG, orphans),
                    orphaned=True,
                )
            )
        return columns

    def _emit(self, level: str, message: str) -> BoardNotice:
        notice = BoardNotice(level=level, message=message)
        self.notices.append(notice)
        if self.notify is not None:
            self.notify(notice)
        return notice

    # === DRAG LIFECYCLE ===

    def start_drag(self, ticket_id: UUID) -> BoardCard:
        if self._drag is not None:
            raise ValidationError("Another ticket is already being dragged")
        card = self.cards.get(ticket_id)
        if card is None:
            raise NotFound("Ticket", ticket_id)
        if ticket_id in self.pending:
            raise ValidationError(f"Ticket #{card.number} has a move in progress")
        self._drag = _Drag(ticket_id=ticket_id, snapshot=replace(card))
        self.state = DragState.DRAGGING
        return card

    def cancel_drag(self) -> None:
        self._drag = None
        self.state = DragState.IDLE

    def move_within_column(self, ticket_id: UUID, position: int) -> List[BoardCard]:
        """Reorder a card inside its column. Lost on the next load."""
        card = self.cards.get(ticket_id)
        if card is None:
            raise NotFound("Ticket", ticket_id)
        slug = card.stage if card.stage in self._stage_by_slug() else ORPHANED_SLUG
        column = next(c for c in self.columns() if c.slug == slug)
        ids = [c.id for c in column.cards if c.id != ticket_id]
        position = max(0, min(position, len(ids)))
        ids.insert(position, ticket_id)
        self._manual_order[slug] = ids
        return [self.cards[i] for i in ids]

    async def drop(self, target_slug: Optional[str], position: Optional[int] = None) -> DropOutcome:
        """Finish the active drag on ``target_slug``; None means outside every column."""
        if self._drag is None:
            raise ValidationError("No ticket is being dragged")
        drag, self._drag = self._drag, None
        card = self.cards[drag.ticket_id]
        origin = drag.snapshot.stage

        if target_slug is None or target_slug not in self._stage_by_slug():
            self.state = DragState.IDLE
            return DropOutcome(DragState.IDLE, card.id, origin, None)
        if target_slug == card.stage:
            if position is not None:
                self.move_within_column(card.id, position)
            self.state = DragState.IDLE
            return DropOutcome(DragState.IDLE, card.id, origin, target_slug)

        return await self._commit(card, drag.snapshot, target_slug)

    async def _commit(self, card: BoardCard, snapshot: BoardCard, target_slug: str) -> DropOutcome:
        label = self._stage_by_slug()[target_slug].name
        card.stage = target_slug
        card.pending = True
        self.pending.add(card.id)
        committed = False
        notice = None
        try:
            ticket = await self.lifecycle.change_stage(card.id, target_slug, self.actor_id)
            committed = True
            card.stage = ticket.stage
        except SacDeskError as exc:
            notice = self._emit("error", f"Could not move ticket #{card.number}: {exc.message}")
        finally:
            self.pending.discard(card.id)
            card.pending = False
            if not committed:
                card.stage = snapshot.stage
                self.state = DragState.ROLLED_BACK
                logger.warning(f"Ticket #{card.number} move to {target_slug} rolled back")

        self.state = DragState.COMMITTED if committed else DragState.ROLLED_BACK
        if committed:
            notice = self._emit("success", f"Ticket #{card.number} moved to {label}")
            logger.info(f"Ticket #{card.number} moved {snapshot.stage} -> {target_slug}")
        return DropOutcome(self.state, card.id, snapshot.stage, target_slug, notice)

    async def move(self, ticket_id: UUID, target_slug: Optional[str], position: Optional[int] = None) -> DropOutcome:
        """Start and finish a drag in one call."""
        self.start_drag(ticket_id)
        return await self.drop(target_slug, position)
