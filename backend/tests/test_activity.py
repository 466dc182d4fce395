from collections import Counter
from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlmodel import Session

from conftest import add_client, add_user
from sacdesk.core.exceptions import ValidationError
from sacdesk.core.gateway import PersistenceGateway
from sacdesk.models import SystemLogAction, TicketHistory, TicketHistoryAction
from sacdesk.services.activity import MISSING_TICKET_TITLE, recent_activity
from sacdesk.services.system_logs import SystemLogBook
from sacdesk.services.tasks import TaskType, classify, my_tasks

NOW = datetime(2030, 1, 10, 12, 0)


class RecordingGateway(PersistenceGateway):
    def __init__(self, engine):
        super().__init__(engine)
        self.selects = Counter()

    async def select(self, model, *filters, **kwargs):
        self.selects[model.__tablename__] += 1
        return await super().select(model, *filters, **kwargs)


# === HISTORY FEED ===

@pytest.mark.asyncio
async def test_feed_labels_entries_with_ticket_and_author(gateway, lifecycle, analyst):
    first = await lifecycle.create(title="Printer broken", description="d", creator_id=analyst.id)
    await lifecycle.create(title="Login fails", description="d", creator_id=analyst.id)
    await lifecycle.change_stage(first.id, "in_progress", analyst.id)

    entries = await recent_activity(gateway)

    assert len(entries) == 3
    latest = entries[0]
    assert latest.action == TicketHistoryAction.STAGE_CHANGED
    assert (latest.ticket_number, latest.ticket_title) == (1, "Printer broken")
    assert latest.user_name == "Ana Analyst"


@pytest.mark.asyncio
async def test_feed_search_matches_title_number_author_and_action(gateway, lifecycle, analyst):
    first = await lifecycle.create(title="Printer broken", description="d", creator_id=analyst.id)
    await lifecycle.create(title="Login fails", description="d", creator_id=analyst.id)
    await lifecycle.add_comment(first.id, analyst.id, "Checked the cable")

    assert {e.ticket_title for e in await recent_activity(gateway, search="PRINTER")} == {"Printer broken"}
    assert {e.ticket_number for e in await recent_activity(gateway, search="2")} == {2}
    assert len(await recent_activity(gateway, search="ana analyst")) == 3
    assert [e.action for e in await recent_activity(gateway, search="comment")] == [
        TicketHistoryAction.COMMENT_ADDED
    ]
    assert len(await recent_activity(gateway, search="   ")) == 3


@pytest.mark.asyncio
async def test_feed_falls_back_for_missing_ticket_and_author(gateway, engine):
    with Session(engine) as session:
        session.add(TicketHistory(ticket_id=uuid4(), action=TicketHistoryAction.CREATED))
        session.commit()

    [entry] = await recent_activity(gateway)

    assert (entry.ticket_number, entry.ticket_title) == (0, MISSING_TICKET_TITLE)
    assert entry.user_name == "System"


@pytest.mark.asyncio
async def test_feed_batches_lookups(engine, lifecycle, analyst):
    for index in range(5):
        await lifecycle.create(title=f"Ticket {index}", description="d", creator_id=analyst.id)
    recording = RecordingGateway(engine)

    entries = await recent_activity(recording, limit=3)

    assert len(entries) == 3
    assert recording.selects == Counter({"ticket_history": 1, "tickets": 1, "users": 1})


# === SYSTEM LOGS ===

@pytest.mark.asyncio
async def test_system_log_entries_newest_first_with_filters(gateway, admin):
    book = SystemLogBook(gateway)
    await book.record(SystemLogAction.LOGIN, "users", admin.id, user_id=admin.id, ip_address="10.0.0.1")
    await book.record(
        SystemLogAction.CREATE, "workflow_stages", uuid4(), user_id=admin.id, details={"name": "Escalated"}
    )
    await book.record(SystemLogAction.DELETE, "landing_pages", uuid4())

    entries = await book.list_logs()
    assert [e.action for e in entries] == ["delete", "create", "login"]
    assert entries[0].user_name == "System"
    assert entries[1].user_name == "Admin"
    assert entries[1].details == {"name": "Escalated"}

    logins = await book.list_logs(action="login")
    assert [(e.entity_id, e.ip_address) for e in logins] == [(str(admin.id), "10.0.0.1")]
    assert [e.action for e in await book.list_logs(entity_type="landing_pages")] == ["delete"]


@pytest.mark.asyncio
async def test_system_log_rejects_unknown_action(gateway):
    with pytest.raises(ValidationError):
        await SystemLogBook(gateway).record("explode", "users")


# === TASKS ===

@pytest.mark.parametrize(
    "deadline, expected",
    [
        (None, TaskType.ASSIGNED),
        (NOW - timedelta(minutes=1), TaskType.OVERDUE),
        (NOW + timedelta(days=6), TaskType.UPCOMING),
        (NOW + timedelta(days=8), TaskType.ASSIGNED),
    ],
)
def test_classify_by_deadline(deadline, expected):
    assert classify(deadline, NOW) == expected


@pytest.mark.asyncio
async def test_my_tasks_lists_assigned_then_observed(gateway, lifecycle, analyst, engine):
    colleague = add_user(engine, "colleague@example.com", full_name="Col League")
    acme = add_client(engine, "Acme Ltd")

    def create(title, deadline=None, owner=analyst, **extra):
        return lifecycle.create(
            title=title, description="d", creator_id=owner.id, analyst_id=owner.id, deadline=deadline, **extra
        )

    await create("Later", NOW + timedelta(days=30))
    await create("Undated")
    late = await create("Late", NOW - timedelta(days=1), client_id=acme.id)
    await create("Soon", NOW + timedelta(days=2))
    done = await create("Done", NOW + timedelta(days=1))
    await lifecycle.change_stage(done.id, "resolved", analyst.id)
    watched = await create("Watched", owner=colleague)
    cancelled = await create("Dropped", owner=colleague)
    await lifecycle.change_stage(cancelled.id, "cancelled", colleague.id)
    for ticket_id in (watched.id, cancelled.id, late.id):
        await lifecycle.add_observer(ticket_id, analyst.id, colleague.id)

    tasks = await my_tasks(gateway, analyst.id, now=NOW)

    assert [(t.title, t.type) for t in tasks] == [
        ("Late", TaskType.OVERDUE),
        ("Soon", TaskType.UPCOMING),
        ("Later", TaskType.ASSIGNED),
        ("Undated", TaskType.ASSIGNED),
        ("Watched", TaskType.OBSERVING),
    ]
    assert tasks[0].client_name == "Acme Ltd"
    assert tasks[-1].id == watched.id


@pytest.mark.asyncio
async def test_my_tasks_without_tickets_skips_lookups(engine, analyst):
    recording = RecordingGateway(engine)

    assert await my_tasks(recording, analyst.id, now=NOW) == []
    assert recording.selects == Counter({"tickets": 1, "ticket_observers": 1})
