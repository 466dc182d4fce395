from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from sacdesk.core.config import settings
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import NumberSequence, Permission, WorkflowStage
from sacdesk.services.permissions import DEFAULT_PERMISSIONS
from sacdesk.services.workflow_stages import DEFAULT_STAGES

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)


def seed_defaults(bind: Engine) -> None:
    """Insert system stages, the ticket number sequence and the permission matrix once."""
    with Session(bind) as session:
        if not session.exec(select(WorkflowStage)).first():
            for order, (slug, name, color) in enumerate(DEFAULT_STAGES):
                session.add(
                    WorkflowStage(
                        name=name,
                        slug=slug,
                        color=color,
                        display_order=order,
                        is_default=True,
                    )
                )
            logger.info(f"Seeded {len(DEFAULT_STAGES)} system workflow stages")

        if not session.get(NumberSequence, settings.TICKET_NUMBER_SEQUENCE):
            session.add(NumberSequence(name=settings.TICKET_NUMBER_SEQUENCE, last_value=0))

        if not session.exec(select(Permission)).first():
            for role, grants in DEFAULT_PERMISSIONS.items():
                for resource, flags in grants.items():
                    session.add(
                        Permission(
                            role=role,
                            resource=resource,
                            can_create="c" in flags,
                            can_read="r" in flags,
                            can_update="u" in flags,
                            can_delete="d" in flags,
                        )
                    )
        session.commit()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create database tables in environments without migrations."""
    bind = bind or engine
    SQLModel.metadata.create_all(bind=bind)
    seed_defaults(bind)


_gateway = PersistenceGateway(engine)


def get_gateway() -> PersistenceGateway:
    return _gateway


GatewayDep = Annotated[PersistenceGateway, Depends(get_gateway)]
