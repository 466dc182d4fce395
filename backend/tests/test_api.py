import pytest
from fastapi.testclient import TestClient

from conftest import add_user
from sacdesk.api.deps import get_attachment_store, get_registry
from sacdesk.core.config import settings
from sacdesk.core.limiter import limiter
from sacdesk.core.security import create_access_token, get_password_hash
from sacdesk.db import get_gateway
from sacdesk.main import app
from sacdesk.models import Role
from sacdesk.services.attachments import AttachmentStore
from sacdesk.services.workflow_stages import WorkflowStageRegistry

API = settings.API_V1_STR


@pytest.fixture
def client(gateway, tmp_path):
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_registry] = lambda: WorkflowStageRegistry(gateway)
    app.dependency_overrides[get_attachment_store] = lambda: AttachmentStore(gateway, upload_dir=tmp_path / "uploads")
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def create_ticket(client, user, **extra) -> dict:
    payload = {"title": "Printer broken", "description": "It does not print", **extra}
    response = client.post(f"{API}/tickets/", json=payload, headers=auth(user))
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get(f"{API}/health/").json() == {"status": "ok"}


def test_login_and_me(client, engine):
    add_user(engine, "carla@example.com", role=Role.SUPERVISOR, hashed_password=get_password_hash("Password123!"))

    bad = client.post(f"{API}/auth/login", json={"email": "carla@example.com", "password": "wrong"})
    assert bad.status_code == 400

    tokens = client.post(f"{API}/auth/login", json={"email": "Carla@example.com", "password": "Password123!"})
    assert tokens.status_code == 200
    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens.json()['access_token']}"})
    assert me.json()["email"] == "carla@example.com"
    assert me.json()["role"] == Role.SUPERVISOR

    refreshed = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens.json()["refresh_token"]})
    assert refreshed.status_code == 200


def test_requests_without_token_are_rejected(client):
    assert client.get(f"{API}/board/").status_code == 401
    assert client.get(f"{API}/board/", headers={"Authorization": "Bearer nonsense"}).status_code == 401


def test_ticket_flow_through_board(client, analyst):
    ticket = create_ticket(client, analyst, priority="high")
    assert ticket["number"] == 1
    assert ticket["stage"] == "open"

    board = client.get(f"{API}/board/", headers=auth(analyst)).json()
    open_column = next(c for c in board if c["slug"] == "open")
    assert [card["id"] for card in open_column["cards"]] == [ticket["id"]]

    moved = client.post(
        f"{API}/board/moves",
        json={"ticket_id": ticket["id"], "stage": "resolved"},
        headers=auth(analyst),
    ).json()
    assert moved["state"] == "committed"
    assert moved["notice"]["message"] == "Ticket #1 moved to Resolved"
    resolved_column = next(c for c in moved["columns"] if c["slug"] == "resolved")
    assert [card["id"] for card in resolved_column["cards"]] == [ticket["id"]]

    detail = client.get(f"{API}/tickets/{ticket['id']}", headers=auth(analyst)).json()
    assert detail["resolved_at"] is not None
    history = client.get(f"{API}/tickets/{ticket['id']}/history", headers=auth(analyst)).json()
    assert len(history) == 2


def test_patch_ticket_records_each_field(client, analyst):
    ticket = create_ticket(client, analyst)

    response = client.patch(
        f"{API}/tickets/{ticket['id']}",
        json={"title": "Printer on fire", "priority": "urgent"},
        headers=auth(analyst),
    )

    assert response.status_code == 200
    history = client.get(f"{API}/tickets/{ticket['id']}/history", headers=auth(analyst)).json()
    assert sorted(h["field_name"] for h in history if h["field_name"]) == ["priority", "title"]


def test_domain_errors_map_to_status_codes(client, analyst):
    bad_priority = client.post(
        f"{API}/tickets/",
        json={"title": "T", "description": "D", "priority": "critical"},
        headers=auth(analyst),
    )
    assert bad_priority.status_code == 422
    assert "Priority" in bad_priority.json()["detail"]

    missing = client.get(f"{API}/tickets/00000000-0000-0000-0000-000000000000", headers=auth(analyst))
    assert missing.status_code == 404


def test_internal_comments_hidden_from_plain_users(client, analyst, engine):
    requester = add_user(engine, "requester@example.com", role=Role.USER)
    ticket = create_ticket(client, analyst)
    url = f"{API}/tickets/{ticket['id']}/comments"
    client.post(url, json={"content": "Public note"}, headers=auth(analyst))
    client.post(url, json={"content": "Staff only", "is_internal": True}, headers=auth(analyst))

    staff_view = client.get(url, params={"include_internal": True}, headers=auth(analyst)).json()
    user_view = client.get(url, params={"include_internal": True}, headers=auth(requester)).json()

    assert len(staff_view) == 2
    assert [c["content"] for c in user_view] == ["Public note"]


def test_stage_administration_permissions(client, admin, analyst):
    stages = client.get(f"{API}/workflow-stages/", headers=auth(analyst)).json()
    open_stage = next(s for s in stages if s["slug"] == "open")

    forbidden = client.post(f"{API}/workflow-stages/", json={"name": "Escalated"}, headers=auth(analyst))
    assert forbidden.status_code == 403

    created = client.post(f"{API}/workflow-stages/", json={"name": "Escalated"}, headers=auth(admin))
    assert created.status_code == 201
    assert created.json()["display_order"] == 6

    system_edit = client.patch(
        f"{API}/workflow-stages/{open_stage['id']}", json={"name": "New"}, headers=auth(admin)
    )
    assert system_edit.status_code == 422

    reordered = client.post(
        f"{API}/workflow-stages/{open_stage['id']}/reorder", json={"direction": "up"}, headers=auth(admin)
    )
    assert reordered.json()[0]["slug"] == "open"


def test_custom_field_values_over_http(client, admin):
    field = client.post(
        f"{API}/custom-fields/",
        json={"name": "Segment", "entity_type": "client", "field_type": "select", "options": "Retail\nB2B"},
        headers=auth(admin),
    ).json()
    company = client.post(f"{API}/clients/", json={"name": "Acme Ltd"}, headers=auth(admin)).json()
    url = f"{API}/clients/{company['id']}/custom-values"

    saved = client.put(url, json={"values": {field["id"]: "B2B"}}, headers=auth(admin))
    assert saved.json() == {field["id"]: "B2B"}
    invalid = client.put(url, json={"values": {field["id"]: "Government"}}, headers=auth(admin))
    assert invalid.status_code == 422
    cleared = client.put(url, json={"values": {}}, headers=auth(admin))
    assert cleared.json() == {}

    form = client.get(f"{API}/clients/{company['id']}/custom-form", headers=auth(admin)).json()
    assert form[0]["widget"] == "select"
    assert form[0]["options"] == ["Retail", "B2B"]


def test_permission_rows_are_admin_only_and_unique(client, admin, analyst):
    assert client.get(f"{API}/permissions/", headers=auth(analyst)).status_code == 403

    rows = client.get(f"{API}/permissions/", params={"role": "analyst"}, headers=auth(admin)).json()
    tickets_row = next(r for r in rows if r["resource"] == "tickets")
    assert tickets_row["can_delete"] is False

    duplicate = client.post(
        f"{API}/permissions/", json={"role": "analyst", "resource": "tickets"}, headers=auth(admin)
    )
    assert duplicate.status_code == 422

    updated = client.patch(
        f"{API}/permissions/{tickets_row['id']}", json={"can_delete": True}, headers=auth(admin)
    )
    assert updated.json()["can_delete"] is True


def test_statistics(client, admin, analyst):
    first = create_ticket(client, analyst, priority="urgent", analyst_id=str(analyst.id))
    create_ticket(client, analyst)
    client.post(f"{API}/tickets/{first['id']}/stage", json={"stage": "resolved"}, headers=auth(analyst))

    stats = client.get(f"{API}/statistics/tickets", headers=auth(admin)).json()

    assert stats["total_tickets"] == 2
    assert stats["resolved_tickets"] == 1
    assert stats["created_today"] == 2
    by_stage = {s["stage"]: s["count"] for s in stats["by_stage"]}
    assert by_stage["open"] == 1
    assert by_stage["resolved"] == 1
    by_priority = {p["priority"]: p["count"] for p in stats["by_priority"]}
    assert by_priority["urgent"] == 1
    names = {a["analyst_name"]: a["total_count"] for a in stats["by_analyst"]}
    assert names == {"Ana Analyst": 1, "Unassigned": 1}


def test_public_intake(client, admin, analyst):
    page = client.post(
        f"{API}/landing-pages/",
        json={"slug": "support", "title": "Support", "responsible_id": str(analyst.id)},
        headers=auth(admin),
    )
    assert page.status_code == 201
    client.post(
        f"{API}/landing-pages/",
        json={"slug": "orphan", "title": "Nobody home"},
        headers=auth(admin),
    )

    public = client.get(f"{API}/public/landing-pages/support")
    assert public.json()["title"] == "Support"

    submission = {
        "company": {"name": "Acme Ltd", "email": "ops@example.com", "cnpj": "12345678000190"},
        "ticket": {"title": "Broken invoice", "description": "Totals are wrong"},
    }
    created = client.post(f"{API}/public/landing-pages/support/tickets", json=submission)
    assert created.status_code == 201
    assert created.json() == {"success": True, "protocol": 1}

    matches = client.get(f"{API}/public/landing-pages/support/clients", params={"q": "acme"}).json()
    assert [m["name"] for m in matches] == ["Acme Ltd"]

    no_responsible = client.post(f"{API}/public/landing-pages/orphan/tickets", json=submission)
    assert no_responsible.status_code == 422
    missing = client.post(f"{API}/public/landing-pages/nowhere/tickets", json=submission)
    assert missing.status_code == 404


def test_public_endpoints_are_rate_limited(client, admin, analyst):
    client.post(
        f"{API}/landing-pages/",
        json={"slug": "support", "title": "Support", "responsible_id": str(analyst.id)},
        headers=auth(admin),
    )
    limit = int(settings.PUBLIC_INTAKE_RATE_LIMIT.split("/")[0])

    statuses = [client.get(f"{API}/public/landing-pages/support").status_code for _ in range(limit + 1)]

    assert statuses[:limit] == [200] * limit
    assert statuses[-1] == 429


def test_attachments_over_http(client, analyst, admin, engine):
    colleague = add_user(engine, "colleague@example.com")
    ticket = create_ticket(client, analyst)
    url = f"{API}/tickets/{ticket['id']}/attachments"

    uploaded = client.post(
        url, files={"file": ("notes.txt", b"call back on monday", "text/plain")}, headers=auth(analyst)
    )
    assert uploaded.status_code == 201, uploaded.text
    attachment = uploaded.json()
    assert attachment["original_filename"] == "notes.txt"
    assert attachment["file_size"] == 19

    listed = client.get(url, headers=auth(analyst)).json()
    assert [a["id"] for a in listed] == [attachment["id"]]
    download = client.get(f"{API}/tickets/attachments/{attachment['id']}/download", headers=auth(colleague))
    assert download.status_code == 200
    assert download.content == b"call back on monday"

    denied = client.delete(f"{API}/tickets/attachments/{attachment['id']}", headers=auth(colleague))
    assert denied.status_code == 403
    removed = client.delete(f"{API}/tickets/attachments/{attachment['id']}", headers=auth(admin))
    assert removed.status_code == 204
    assert client.get(url, headers=auth(analyst)).json() == []


def test_history_feed_and_tasks(client, analyst):
    ticket = create_ticket(client, analyst, analyst_id=str(analyst.id), deadline="2000-01-01T00:00:00")
    client.post(f"{API}/tickets/{ticket['id']}/stage", json={"stage": "in_progress"}, headers=auth(analyst))

    feed = client.get(f"{API}/history", headers=auth(analyst)).json()
    assert [e["action"] for e in feed] == ["stage changed", "ticket created"]
    assert feed[0]["ticket_number"] == 1
    assert feed[0]["user_name"] == "Ana Analyst"
    assert client.get(f"{API}/history", params={"search": "nothing like it"}, headers=auth(analyst)).json() == []

    tasks = client.get(f"{API}/tasks", headers=auth(analyst)).json()
    assert [(t["id"], t["type"]) for t in tasks] == [(ticket["id"], "overdue")]


def test_system_logs_record_logins_and_admin_changes(client, admin, analyst, engine):
    add_user(engine, "carla@example.com", hashed_password=get_password_hash("Password123!"))
    client.post(f"{API}/auth/login", json={"email": "carla@example.com", "password": "Password123!"})
    stage = client.post(f"{API}/workflow-stages/", json={"name": "Escalated"}, headers=auth(admin)).json()

    assert client.get(f"{API}/system-logs", headers=auth(analyst)).status_code == 403
    logs = client.get(f"{API}/system-logs", headers=auth(admin)).json()

    assert [(entry["action"], entry["entity_type"]) for entry in logs] == [
        ("create", "workflow_stages"),
        ("login", "users"),
    ]
    assert logs[0]["entity_id"] == stage["id"]
    assert logs[0]["user_name"] == "Admin"
    assert logs[0]["details"]["name"] == "Escalated"
    logins = client.get(f"{API}/system-logs", params={"action": "login"}, headers=auth(admin)).json()
    assert logins[0]["ip_address"] == "testclient"
