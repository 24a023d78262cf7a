"""Tests for the HTTP API."""

import asyncio
from datetime import timezone

import pytest
from fastapi.testclient import TestClient

from teamsync.core.workspace import Workspace
from teamsync.main import create_app
from teamsync.store.memory import MemoryDocumentStore

from helpers import FakeClock, meeting_payload

ADMIN = {"X-User-Id": "admin-1"}
DEV = {"X-User-Id": "dev-1"}
PENDING = {"X-User-Id": "new-1"}


@pytest.fixture
def ws():
    workspace = Workspace(MemoryDocumentStore(strict_indexes=True), clock=FakeClock(), tz=timezone.utc)

    async def seed():
        await workspace.users.create_user("admin-1", display_name="Ada Admin", role="admin", approved=True)
        await workspace.users.create_user("dev-1", display_name="Dan Dev", approved=True)
        await workspace.users.ensure_user({"uid": "new-1", "display_name": "Nia New"})

    asyncio.run(seed())
    return workspace


@pytest.fixture
def client(ws):
    app = create_app(workspace=ws, start_reminders=False)
    with TestClient(app) as c:
        yield c


# === Health and identity ===


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "healthy"
    health = client.get("/health").json()
    assert health["store_ready"] is True
    assert health["reminders_enabled"] is False


def test_missing_or_unknown_identity_is_401(client):
    assert client.get("/api/projects").status_code == 401
    assert client.get("/api/projects", headers={"X-User-Id": "ghost"}).status_code == 401


def test_sign_in_creates_pending_user(client):
    response = client.post("/api/users/sign-in", json={"uid": "g-9", "email": "g9@example.com"})
    assert response.status_code == 200
    body = response.json()
    assert body["approved"] is False
    assert body["role"] == "developer"
    assert client.get("/api/users/me", headers={"X-User-Id": "g-9"}).json()["uid"] == "g-9"


def test_approval_flow(client):
    assert client.get("/api/users/pending", headers=DEV).status_code == 403
    pending = client.get("/api/users/pending", headers=ADMIN).json()
    assert [u["uid"] for u in pending] == ["new-1"]

    assert client.post("/api/users/new-1/approve", headers=ADMIN).json()["approved"] is True
    assert client.post("/api/users/ghost/approve", headers=ADMIN).status_code == 404
    notifications = client.get("/api/notifications", headers=PENDING).json()
    assert notifications[0]["title"] == "Account Approved"


def test_admin_lists_all_users(client):
    everyone = client.get("/api/users", headers=ADMIN).json()
    assert sorted(u["uid"] for u in everyone) == ["admin-1", "dev-1", "new-1"]
    assert client.get("/api/users", headers=DEV).status_code == 403


def test_presence(client):
    response = client.put("/api/users/me/presence", json={"is_online": True}, headers=DEV)
    assert response.json()["is_online"] is True


# === Projects ===


def test_project_crud_and_permissions(client):
    assert client.post("/api/projects", json={"title": "Nope"}, headers=DEV).status_code == 403

    response = client.post("/api/projects", json={"title": "Apollo", "assigned_to": ["dev-1"]}, headers=ADMIN)
    assert response.status_code == 201
    project = response.json()
    assert project["created_by"] == "admin-1"

    assert [p["title"] for p in client.get("/api/projects", headers=DEV).json()] == ["Apollo"]
    assert client.get("/api/projects", headers=PENDING).json() == []

    updated = client.put(f"/api/projects/{project['id']}", json={"status": "Review"}, headers=DEV).json()
    assert updated["status"] == "Review"

    comment = client.post(f"/api/projects/{project['id']}/comments", json={"text": "Nice"}, headers=DEV)
    assert comment.status_code == 201

    sub = client.post(f"/api/projects/{project['id']}/sub-tasks", json={"title": "Design"}, headers=DEV).json()
    done = client.put(
        f"/api/projects/{project['id']}/sub-tasks/{sub['id']}", json={"completed": True}, headers=DEV
    ).json()
    assert done["sub_tasks"][0]["completed"] is True

    assert client.delete(f"/api/projects/{project['id']}", headers=DEV).status_code == 403
    assert client.delete(f"/api/projects/{project['id']}", headers=ADMIN).status_code == 204
    assert client.get(f"/api/projects/{project['id']}", headers=ADMIN).status_code == 404


def test_invalid_body_is_422(client):
    response = client.post("/api/projects", json={"title": "x", "status": "Whenever"}, headers=ADMIN)
    assert response.status_code == 422
    window = client.post(
        "/api/meetings",
        json={"title": "Sync", "start_time": "2024-03-04T10:00:00Z", "end_time": "2024-03-04T08:00:00Z"},
        headers=DEV,
    )
    assert window.status_code == 422


def test_comment_on_missing_project_is_404(client):
    response = client.post("/api/projects/missing/comments", json={"text": "hi"}, headers=DEV)
    assert response.status_code == 404


# === Tasks ===


def test_task_filters_and_summary(client):
    client.post("/api/tasks", json={"title": "Fix login", "priority": "High"}, headers=ADMIN)
    client.post("/api/tasks", json={"title": "Docs", "priority": "Low", "status": "Completed"}, headers=ADMIN)

    assert len(client.get("/api/tasks", headers=DEV).json()) == 2
    high = client.get("/api/tasks", params={"priority": "High"}, headers=DEV).json()
    assert [t["title"] for t in high] == ["Fix login"]
    found = client.get("/api/tasks", params={"search": "docs"}, headers=DEV).json()
    assert [t["title"] for t in found] == ["Docs"]

    summary = client.get("/api/tasks/summary", headers=DEV).json()
    assert summary["by_status"] == {"To Do": 1, "Completed": 1}
    assert summary["total"] == 2


def test_task_view_update_delete(client):
    task = client.post("/api/tasks", json={"title": "Ship", "assigned_to": ["dev-1"]}, headers=ADMIN).json()
    assert client.get(f"/api/tasks/{task['id']}", headers=DEV).json()["view_count"] == 1
    updated = client.put(f"/api/tasks/{task['id']}", json={"status": "Review"}, headers=DEV).json()
    assert updated["status"] == "Review"
    assert client.put("/api/tasks/missing", json={"status": "Review"}, headers=DEV).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=DEV).status_code == 204


def test_task_paging_follows_cursor(client):
    for title in ("one", "two", "three"):
        client.post("/api/tasks", json={"title": title}, headers=ADMIN)

    first = client.get("/api/tasks/page", params={"limit": 2}, headers=DEV).json()
    assert len(first["items"]) == 2
    assert first["next_cursor"] == first["items"][-1]["id"]

    rest = client.get("/api/tasks/page", params={"limit": 2, "start_after": first["next_cursor"]}, headers=DEV).json()
    assert len(rest["items"]) == 1
    assert rest["next_cursor"] is None
    seen = {t["title"] for t in first["items"] + rest["items"]}
    assert seen == {"one", "two", "three"}

    assert client.get("/api/tasks/page", headers=PENDING).json() == {"items": [], "next_cursor": None}


def test_pending_user_gets_empty_task_summary_and_stats(client):
    """Unapproved users get no task data from the aggregate routes."""
    client.post("/api/tasks", json={"title": "Secret", "assigned_to": ["dev-1"]}, headers=ADMIN)
    window = {"start": "2024-03-04T00:00:00+00:00", "end": "2024-03-04T23:59:00+00:00"}

    summary = client.get("/api/tasks/summary", headers=PENDING).json()
    assert summary["total"] == 0
    assert summary["recently_updated"] == []
    stats = client.get("/api/tasks/stats", params=window, headers=PENDING).json()
    assert stats["created"] == 0

    assert client.get("/api/tasks/stats", params=window, headers=DEV).json()["created"] == 1


# === Meetings ===


def test_meeting_endpoints(client):
    response = client.post("/api/meetings", json=meeting_payload(assigned_to=["dev-1"]), headers=ADMIN)
    assert response.status_code == 201
    meeting = response.json()
    assert meeting["date"] == "2024-03-04"

    assert [m["id"] for m in client.get("/api/meetings/today", headers=DEV).json()] == [meeting["id"]]
    assert [m["id"] for m in client.get("/api/meetings/upcoming", headers=DEV).json()] == [meeting["id"]]
    assert [m["id"] for m in client.get("/api/meetings/by-date/2024-03-04", headers=DEV).json()] == [meeting["id"]]

    cd = client.get(f"/api/meetings/{meeting['id']}/countdown", headers=DEV).json()
    assert cd["status"] == "starting_soon"
    assert cd["display_text"] == "14m left"
    assert cd["time_left"]["total_seconds"] == 14 * 60

    status = client.put(f"/api/meetings/{meeting['id']}/status", json={"status": "In Progress"}, headers=DEV)
    assert status.json()["status"] == "In Progress"

    attended = client.put(f"/api/meetings/{meeting['id']}/attendance", json={"attended": True}, headers=DEV)
    assert attended.json()["attendees"] == ["dev-1"]

    assert client.get("/api/meetings/missing/countdown", headers=DEV).status_code == 404


def test_pending_user_has_no_meetings_of_their_own(client):
    client.post("/api/meetings", json=meeting_payload(title="All hands", is_assigned_to_all=True), headers=ADMIN)

    assert client.get("/api/meetings/mine", headers=PENDING).json() == []
    assert [m["title"] for m in client.get("/api/meetings/mine", headers=DEV).json()] == ["All hands"]


# === Reports ===


def test_report_endpoints(client):
    payload = {
        "title": "Weekly",
        "start_date": "2024-03-04T00:00:00Z",
        "end_date": "2024-03-08T00:00:00Z",
        "due_date": "2024-03-08T17:00:00Z",
        "assigned_to": ["dev-1"],
    }
    report = client.post("/api/reports", json=payload, headers=ADMIN).json()
    assert [r["id"] for r in client.get("/api/reports/by-date/2024-03-08", headers=DEV).json()] == [report["id"]]
    submitted = client.put(f"/api/reports/{report['id']}", json={"status": "Submitted"}, headers=DEV).json()
    assert submitted["submitted_at"]
    bad = client.put(f"/api/reports/{report['id']}", json={"end_date": "2024-03-01T00:00:00Z"}, headers=DEV)
    assert bad.status_code == 422


# === Feeds ===


def test_notification_feed(client):
    client.post("/api/tasks", json={"title": "Ship", "assigned_to": ["dev-1"]}, headers=ADMIN)
    [notification] = client.get("/api/notifications", headers=DEV).json()
    assert client.put(f"/api/notifications/{notification['id']}/read", headers=ADMIN).status_code == 404
    assert client.put(f"/api/notifications/{notification['id']}/read", headers=DEV).json()["read"] is True
    assert client.put("/api/notifications/read-all", headers=DEV).json() == {"updated": 0}
    assert client.delete(f"/api/notifications/{notification['id']}", headers=DEV).status_code == 204


def test_activity_feed(client):
    client.post("/api/tasks", json={"title": "Ship", "assigned_to": ["dev-1"]}, headers=ADMIN)
    [activity] = client.get("/api/activities", headers=DEV).json()
    assert activity["type"] == "task_created"
    read = client.put(f"/api/activities/{activity['id']}/read", headers=DEV).json()
    assert read["read_by"] == ["dev-1"]


# === Errors ===


def test_store_outage_is_503(client, ws):
    ws.store.available = False
    assert client.get("/api/projects", headers=DEV).status_code == 503


def test_app_builds_its_own_store():
    with TestClient(create_app(start_reminders=False)) as c:
        assert c.get("/health").json()["store_ready"] is True
        assert c.post("/api/users/sign-in", json={"uid": "fresh"}).json()["approved"] is False
