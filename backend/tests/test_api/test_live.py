"""Tests for the Server-Sent Events helpers and live endpoints."""

import asyncio
import json
from datetime import timezone

import pytest
from fastapi.testclient import TestClient

from teamsync.api.live import _offer, event_generator, format_sse
from teamsync.core.workspace import Workspace
from teamsync.main import create_app
from teamsync.store.memory import MemoryDocumentStore


def test_format_sse():
    chunk = format_sse("dashboard", {"loading": False})
    assert chunk.startswith("event: dashboard\n")
    assert json.loads(chunk.split("data: ", 1)[1]) == {"loading": False}
    assert chunk.endswith("\n\n")


def test_offer_drops_oldest_when_full():
    queue = asyncio.Queue(maxsize=2)
    for chunk in ("a", "b", "c"):
        _offer(queue, chunk)
    assert [queue.get_nowait(), queue.get_nowait()] == ["b", "c"]


async def test_generator_heartbeats_and_releases():
    queue = asyncio.Queue()
    released = []
    gen = event_generator(queue, lambda: released.append(True), heartbeat_interval=0.01)

    assert await gen.__anext__() == ": heartbeat\n\n"
    queue.put_nowait("event: x\ndata: {}\n\n")
    assert await gen.__anext__() == "event: x\ndata: {}\n\n"
    queue.put_nowait(None)
    with pytest.raises(StopAsyncIteration):
        await gen.__anext__()
    assert released == [True]


async def test_dashboard_stream_pushes_views(workspace, store, dev):
    queue = asyncio.Queue(maxsize=10)
    sync = workspace.dashboard(dev)
    sync.add_listener(lambda views: _offer(queue, format_sse("dashboard", views.to_dict())))
    await store.flush()
    chunk = queue.get_nowait()
    payload = json.loads(chunk.split("data: ", 1)[1])
    assert payload["loading"] is False
    workspace.release_dashboard(sync)
    assert store.listener_count() == 0


def test_stream_rejects_unknown_collection():
    workspace = Workspace(MemoryDocumentStore(), tz=timezone.utc)
    asyncio.run(workspace.users.create_user("u1", approved=True))
    with TestClient(create_app(workspace=workspace, start_reminders=False)) as client:
        assert client.get("/api/live/users", headers={"X-User-Id": "u1"}).status_code == 404
        assert client.get("/api/live/dashboard").status_code == 401
