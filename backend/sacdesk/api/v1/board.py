from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends

from sacdesk.api.deps import LifecycleDep, RegistryDep, require
from sacdesk.db import GatewayDep
from sacdesk.models import Resource, User
from sacdesk.schemas import BoardColumnRead, BoardMove, BoardMoveResult
from sacdesk.services.kanban import KanbanBoard

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[BoardColumnRead])
async def get_board(
    gateway: GatewayDep,
    registry: RegistryDep,
    lifecycle: LifecycleDep,
    current_user: User = Depends(require(Resource.TICKETS, "read")),
):
    """One column per active stage, plus an orphaned column when needed."""
    board = KanbanBoard(gateway, registry, lifecycle, current_user.id)
    columns = await board.load()
    return [asdict(column) for column in columns]


@router.post("/moves", response_model=BoardMoveResult)
async def move_card(
    payload: BoardMove,
    gateway: GatewayDep,
    registry: RegistryDep,
    lifecycle: LifecycleDep,
    current_user: User = Depends(require(Resource.TICKETS, "update")),
):
    """Drop a card on a column. Failed moves come back rolled back with an error notice."""
    board = KanbanBoard(gateway, registry, lifecycle, current_user.id)
    await board.load()
    outcome = await board.move(payload.ticket_id, payload.stage, payload.position)
    return BoardMoveResult(
        state=outcome.state,
        ticket_id=outcome.ticket_id,
        from_stage=outcome.from_stage,
        to_stage=outcome.to_stage,
        notice=asdict(outcome.notice) if outcome.notice else None,
        columns=[asdict(column) for column in board.columns()],
    )
