from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from sacdesk.core.gateway import PersistenceGateway
from sacdesk.db import build_engine, init_db
from sacdesk.models import Client, Role, TicketHistory, User
from sacdesk.services.custom_fields import CustomFieldEngine
from sacdesk.services.tickets import TicketLifecycle
from sacdesk.services.workflow_stages import WorkflowStageRegistry


def add_user(engine, email: str, role: str = Role.ANALYST, full_name: str | None = None,
             hashed_password: str = "not-a-real-hash") -> User:
    with Session(engine, expire_on_commit=False) as session:
        user = User(email=email, full_name=full_name, role=role, hashed_password=hashed_password)
        session.add(user)
        session.commit()
        return user


def add_client(engine, name: str, document: str | None = None) -> Client:
    with Session(engine, expire_on_commit=False) as session:
        client = Client(name=name, document=document)
        session.add(client)
        session.commit()
        return client


def stage_orders(stages) -> dict[str, int]:
    return {stage.slug: stage.display_order for stage in stages}


def refuse_history_rows(session, flush_context, instances):
    if any(isinstance(row, TicketHistory) for row in session.new):
        raise OperationalError("INSERT INTO ticket_history", {}, Exception("disk I/O error"))


class FailingHistoryInserts(PersistenceGateway):
    """Accepts every write except history rows."""

    def _execute(self, operation):
        def refusing(session):
            event.listen(session, "before_flush", refuse_history_rows)
            return operation(session)

        return super()._execute(refusing)


@pytest.fixture
def engine(tmp_path):
    # A file database so threadpool connections share the same data
    engine = build_engine(f"sqlite:///{tmp_path / 'sacdesk_test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def gateway(engine) -> PersistenceGateway:
    return PersistenceGateway(engine)


@pytest.fixture
def registry(gateway) -> WorkflowStageRegistry:
    return WorkflowStageRegistry(gateway)


@pytest.fixture
def fields(gateway) -> CustomFieldEngine:
    return CustomFieldEngine(gateway)


@pytest.fixture
def lifecycle(gateway, registry, fields) -> TicketLifecycle:
    return TicketLifecycle(gateway, registry, fields)


@pytest.fixture
def admin(engine) -> User:
    return add_user(engine, "admin@example.com", role=Role.ADMIN, full_name="Admin")


@pytest.fixture
def analyst(engine) -> User:
    return add_user(engine, "analyst@example.com", role=Role.ANALYST, full_name="Ana Analyst")


@pytest_asyncio.fixture
async def ticket(lifecycle, analyst):
    return await lifecycle.create(
        title="Printer broken",
        description="The office printer does not turn on",
        creator_id=analyst.id,
    )
