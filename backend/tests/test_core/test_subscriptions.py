"""Tests for live subscriptions and dashboard publication."""

import asyncio

from teamsync.core.subscriptions import DashboardSync, LiveState, SubscriptionManager
from teamsync.core.visibility import visibility_scope
from teamsync.models import Project
from teamsync.store.base import OrderBy

from helpers import at, iso, meeting_payload


async def _project(store, doc_id, title, assigned_to, updated_at):
    await store.set(
        "projects",
        doc_id,
        {
            "title": title,
            "assigned_to": assigned_to,
            "created_by": "admin-1",
            "created_at": updated_at,
            "updated_at": updated_at,
        },
    )


# === SubscriptionManager ===


async def test_one_listener_per_scope_key(store, dev):
    manager = SubscriptionManager(store)
    scope = visibility_scope(dev, "projects")
    states = []
    manager.subscribe(scope, states.append)
    manager.subscribe(scope, states.append)
    assert store.listener_count("projects") == 1
    assert manager.active_keys == [scope.key]
    await store.flush()
    assert len(states) == 1


async def test_snapshot_is_scoped_sorted_and_converted(store, dev):
    await _project(store, "p1", "Old", ["dev-1"], iso(at(8)))
    await _project(store, "p2", "New", ["dev-1"], iso(at(9)))
    await _project(store, "p3", "Hidden", ["dev-2"], iso(at(10)))
    manager = SubscriptionManager(store)
    states = []
    manager.subscribe(
        visibility_scope(dev, "projects"),
        states.append,
        to_entity=Project.model_validate,
        order_by=OrderBy("updated_at", descending=True),
    )
    await store.flush()
    [state] = states
    assert state.loading is False
    assert state.error is None
    assert [p.title for p in state.items] == ["New", "Old"]


async def test_no_callback_after_unsubscribe(store, dev):
    manager = SubscriptionManager(store)
    states = []
    unsubscribe = manager.subscribe(visibility_scope(dev, "projects"), states.append)
    unsubscribe()
    await _project(store, "p1", "A", ["dev-1"], iso(at(8)))
    await store.flush()
    assert states == []
    assert store.listener_count("projects") == 0


async def test_replaced_subscription_ignores_old_unsubscribe(store, dev):
    manager = SubscriptionManager(store)
    scope = visibility_scope(dev, "projects")
    old_states, new_states = [], []
    old_unsubscribe = manager.subscribe(scope, old_states.append)
    manager.subscribe(scope, new_states.append)
    old_unsubscribe()
    assert manager.is_active(scope.key)
    await store.flush()
    assert old_states == []
    assert len(new_states) == 1


async def test_error_keeps_last_known_good_items(store, dev):
    await _project(store, "p1", "A", ["dev-1"], iso(at(8)))
    manager = SubscriptionManager(store)
    states = []
    manager.subscribe(visibility_scope(dev, "projects"), states.append)
    await store.flush()

    store.available = False
    store.notify("projects")
    await store.flush()

    good, failed = states
    assert failed.error
    assert failed.loading is False
    assert failed.items == good.items
    assert [d["title"] for d in failed.items] == ["A"]


async def test_unapproved_user_gets_empty_snapshot(store, pending):
    manager = SubscriptionManager(store)
    states = []
    manager.subscribe(visibility_scope(pending, "projects"), states.append)
    await asyncio.sleep(0)
    assert states == [LiveState((), loading=False)]
    assert store.listener_count("projects") == 0


async def test_unsubscribe_all(store, dev):
    manager = SubscriptionManager(store)
    manager.subscribe(visibility_scope(dev, "projects"), lambda s: None)
    manager.subscribe(visibility_scope(dev, "meetings"), lambda s: None)
    manager.unsubscribe_all()
    manager.unsubscribe("projects:user:dev-1")
    assert manager.active_keys == []
    assert store.listener_count() == 0


# === DashboardSync ===


async def test_dashboard_publishes_once_all_collections_arrive(workspace, store, clock, admin, dev):
    await workspace.create_meeting(admin, meeting_payload("Standup", start=at(10), assigned_to=["dev-1"]))
    await workspace.create_meeting(admin, meeting_payload("Tomorrow", start=at(10, day=5), assigned_to=["dev-1"]))
    await workspace.create_task(admin, {"title": "Due today", "due_date": iso(at(17)), "status": "To Do"})
    await store.flush()

    sync = DashboardSync(store, dev, clock=clock, tz=workspace.tz)
    published = []
    sync.add_listener(published.append)
    sync.start()
    await store.flush()

    assert len(published) == 1
    views = published[0]
    assert views.loading is False
    assert not any(views.errors.values())
    assert [m.title for m in views.todays_meetings] == ["Standup"]
    assert [m.title for m in views.upcoming_meetings] == ["Standup", "Tomorrow"]
    assert [t.title for t in views.todays_tasks] == ["Due today"]
    assert views.task_summary["by_status"] == {"To Do": 1}
    assert sync.latest is views
    sync.stop()


async def test_dashboard_republishes_on_change_and_stops_cleanly(workspace, store, clock, admin, dev):
    sync = DashboardSync(store, dev, clock=clock, tz=workspace.tz)
    published = []
    sync.add_listener(published.append)
    sync.start()
    await store.flush()
    assert published[-1].tasks == ()

    await workspace.create_task(admin, {"title": "New"})
    await store.flush()
    assert [t.title for t in published[-1].tasks] == ["New"]

    sync.stop()
    count = len(published)
    await workspace.create_task(admin, {"title": "After stop"})
    await store.flush()
    assert len(published) == count
    assert store.listener_count() == 0


async def test_dashboard_views_serialise(workspace, store, clock, dev):
    sync = DashboardSync(store, dev, clock=clock, tz=workspace.tz)
    sync.start()
    await store.flush()
    data = sync.latest.to_dict()
    assert set(data) >= {"projects", "tasks", "meetings", "todays_meetings", "task_summary", "errors"}
    assert data["task_summary"]["recently_updated"] == []
    sync.stop()


async def test_listener_error_does_not_stop_others(store, clock, dev):
    sync = DashboardSync(store, dev, clock=clock)
    seen = []

    def broken(views):
        raise RuntimeError("boom")

    sync.add_listener(broken)
    sync.add_listener(seen.append)
    sync.start()
    await store.flush()
    assert len(seen) == 1
    sync.stop()
