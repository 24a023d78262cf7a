"""Tests for the workspace: permissions, visibility and cross-entity flows."""

import pytest

from teamsync.errors import PermissionDeniedError, ValidationError

from helpers import at, iso, meeting_payload


# === Users ===


async def test_pending_user_is_locked_out(workspace, pending):
    assert pending.approved is False
    assert await workspace.get_projects(pending) == []
    assert await workspace.get_tasks(pending) == []
    assert await workspace.get_notifications(pending) == []
    with pytest.raises(PermissionDeniedError):
        await workspace.create_task(pending, {"title": "Sneaky"})


async def test_only_admins_manage_users(workspace, admin, dev, pending):
    with pytest.raises(PermissionDeniedError):
        await workspace.approve_user(dev, "new-1")
    with pytest.raises(PermissionDeniedError):
        await workspace.get_pending_users(dev)
    assert [u.uid for u in await workspace.get_pending_users(admin)] == ["new-1"]

    approved = await workspace.approve_user(admin, "new-1")
    assert approved.approved is True
    assert await workspace.get_pending_users(admin) == []
    assert await workspace.approve_user(admin, "ghost") is None


async def test_reject_user_deletes(workspace, admin, pending):
    assert await workspace.reject_user(admin, "new-1") is True
    assert await workspace.get_user("new-1") is None


async def test_users_may_edit_themselves_only(workspace, admin, dev, dev2):
    updated = await workspace.update_user(dev, "dev-1", display_name="Daniel")
    assert updated.name == "Daniel"
    with pytest.raises(PermissionDeniedError):
        await workspace.update_user(dev, "dev-2", display_name="Hacked")
    assert (await workspace.update_user(admin, "dev-2", role="admin")).is_admin


async def test_presence(workspace, dev):
    user = await workspace.set_presence(dev, {"is_online": True})
    assert user.is_online is True
    with pytest.raises(ValidationError):
        await workspace.set_presence(dev, {"is_online": "perhaps"})


# === Projects ===


async def test_project_visibility_by_role(workspace, admin, dev, dev2):
    mine, _ = await workspace.create_project(admin, {"title": "Mine", "assigned_to": ["dev-1"]})
    await workspace.create_project(admin, {"title": "Theirs", "assigned_to": ["dev-2"]})

    assert [p.title for p in await workspace.get_projects(dev)] == ["Mine"]
    assert len(await workspace.get_projects(admin)) == 2
    assert await workspace.get_project(dev, mine.id) is not None
    theirs = [p for p in await workspace.get_projects(admin) if p.title == "Theirs"][0]
    assert await workspace.get_project(dev, theirs.id) is None


async def test_create_project_is_admin_only_and_syncs_users(workspace, admin, dev):
    with pytest.raises(PermissionDeniedError):
        await workspace.create_project(dev, {"title": "Nope"})
    project, _ = await workspace.create_project(admin, {"title": "Apollo", "assigned_to": ["dev-1"]})
    assert (await workspace.get_user("dev-1")).projects == [project.id]


async def test_assignee_can_update_project(workspace, clock, admin, dev, dev2):
    project, _ = await workspace.create_project(admin, {"title": "Apollo", "assigned_to": ["dev-1"]})
    clock.advance(minutes=1)
    updated = await workspace.update_project(dev, project.id, {"status": "Development", "progress": 40})
    assert updated.status == "Development"
    assert updated.updated_by == "dev-1"
    assert updated.created_by == "admin-1"
    with pytest.raises(PermissionDeniedError):
        await workspace.update_project(dev2, project.id, {"status": "Done"})

    admin_feed = await workspace.notifications.list_for_user("admin-1")
    assert admin_feed[0].action_type == "status_updated"


async def test_update_project_reassignment_syncs_users(workspace, admin, dev, dev2):
    project, _ = await workspace.create_project(admin, {"title": "Apollo", "assigned_to": ["dev-1"]})
    await workspace.update_project(admin, project.id, {"assigned_to": ["dev-1", "dev-2"]})
    assert (await workspace.get_user("dev-2")).projects == [project.id]


async def test_update_missing_project_returns_none(workspace, admin):
    assert await workspace.update_project(admin, "missing", {"title": "x"}) is None


async def test_delete_project_removes_its_notifications(workspace, admin, dev):
    project, _ = await workspace.create_project(admin, {"title": "Apollo", "assigned_to": ["dev-1"]})
    assert await workspace.notifications.list_for_user("dev-1")
    assert await workspace.delete_project(admin, project.id) is True
    assert await workspace.notifications.list_for_user("dev-1") == []
    assert await workspace.delete_project(admin, project.id) is False


async def test_sync_project_reports_missing_users(workspace, admin, dev):
    assert await workspace.sync_project_with_users("p1", ["dev-1", "ghost"]) == ["ghost"]


# === Tasks ===


async def test_all_approved_users_see_all_tasks(workspace, admin, dev):
    await workspace.create_task(admin, {"title": "Unassigned"})
    assert [t.title for t in await workspace.get_tasks(dev)] == ["Unassigned"]


async def test_filtered_tasks_and_views(workspace, clock, admin, dev):
    task, _ = await workspace.create_task(admin, {"title": "Fix login", "priority": "High", "assigned_to": ["dev-1"]})
    clock.advance(seconds=1)
    await workspace.create_task(admin, {"title": "Docs", "priority": "Low"})

    found = await workspace.get_tasks(dev, {"priority": ["High"]})
    assert [t.title for t in found] == ["Fix login"]

    viewed = await workspace.view_task(dev, task.id)
    assert viewed.view_count == 1
    assert await workspace.view_task(dev, "missing") is None


async def test_task_summary_and_stats(workspace, clock, admin, dev):
    await workspace.create_task(admin, {"title": "a", "assigned_to": ["dev-1"]})
    await workspace.create_task(admin, {"title": "b", "assigned_to": ["dev-1"], "status": "Completed"})
    await workspace.create_task(admin, {"title": "c", "status": "To Do"})

    summary = await workspace.get_task_summary(dev)
    assert summary["by_status"] == {"To Do": 2, "Completed": 1}
    mine = await workspace.get_task_summary(dev, "dev-1")
    assert mine["total"] == 2

    stats = await workspace.get_task_stats(dev, iso(at(0)), iso(at(23)))
    assert stats["created"] == 3
    assert stats["completed"] == 1


async def test_pending_user_gets_no_task_aggregates_or_own_meetings(workspace, admin, pending):
    await workspace.create_task(admin, {"title": "Secret", "assigned_to": ["dev-1"]})
    await workspace.create_meeting(admin, meeting_payload("All hands", is_assigned_to_all=True))

    summary = await workspace.get_task_summary(pending)
    assert summary["total"] == 0
    assert summary["recently_updated"] == []
    assert (await workspace.get_task_stats(pending, iso(at(0)), iso(at(23))))["created"] == 0
    assert await workspace.get_meetings_for_user(pending) == []
    assert [m.title for m in await workspace.get_meetings_for_user(admin)] == ["All hands"]


async def test_task_comment(workspace, admin, dev):
    task, _ = await workspace.create_task(admin, {"title": "a", "assigned_to": ["dev-1"]})
    comment = await workspace.add_task_comment(dev, task.id, {"text": "on it"})
    stored = await workspace.get_task(dev, task.id)
    assert [c.id for c in stored.comments] == [comment.id]
    assert comment.user_name == "Dan Dev"


# === Meetings and reports ===


async def test_meeting_queries(workspace, admin, dev):
    standup, _ = await workspace.create_meeting(admin, meeting_payload("Standup", assigned_to=["dev-1"]))
    await workspace.create_meeting(admin, meeting_payload("Board", start=at(15)))
    await workspace.create_meeting(admin, meeting_payload("Retro", start=at(10, day=5), is_assigned_to_all=True))

    assert [m.title for m in await workspace.get_meetings(dev)] == ["Standup", "Retro"]
    assert [m.title for m in await workspace.get_todays_meetings(dev)] == ["Standup"]
    assert [m.title for m in await workspace.get_meetings_for_date(dev, "2024-03-05")] == ["Retro"]
    assert [m.title for m in await workspace.get_upcoming_meetings("dev-1")] == ["Standup", "Retro"]
    assert [m.title for m in await workspace.get_upcoming_meetings("dev-1", limit=1)] == ["Standup"]

    cd = await workspace.get_meeting_countdown(dev, standup.id)
    assert (cd.status, cd.display_text) == ("starting_soon", "14m left")


async def test_meeting_comment_and_attendance(workspace, admin, dev):
    meeting, _ = await workspace.create_meeting(admin, meeting_payload(assigned_to=["dev-1"]))
    comment = await workspace.add_meeting_comment(dev, meeting.id, {"text": "Agenda?", "type": "pre_meeting"})
    updated = await workspace.mark_attendance(dev, meeting.id)
    assert updated.attendees == ["dev-1"]
    assert updated.last_comment_by == "dev-1"
    assert updated.comments[0].id == comment.id


async def test_reports_for_date(workspace, admin, dev):
    await workspace.create_report(
        admin,
        {
            "title": "Weekly",
            "start_date": iso(at(0)),
            "end_date": iso(at(0, day=8)),
            "due_date": iso(at(17, day=8)),
            "is_assigned_to_all": True,
        },
    )
    assert [r.title for r in await workspace.get_reports_for_date(dev, "2024-03-08")] == ["Weekly"]
    assert await workspace.get_reports_for_date(dev, "2024-03-04") == []


# === Feeds ===


async def test_notifications_are_owner_only(workspace, admin, dev, dev2):
    await workspace.create_task(admin, {"title": "a", "assigned_to": ["dev-1"]})
    [notification] = await workspace.get_notifications(dev)
    assert await workspace.mark_notification_read(dev2, notification.id) is None
    assert await workspace.delete_notification(dev2, notification.id) is False
    assert (await workspace.mark_notification_read(dev, notification.id)).read is True
    assert await workspace.mark_all_notifications_read(dev) == 0


async def test_activity_read_requires_involvement(workspace, admin, dev, dev2):
    _, result = await workspace.create_task(admin, {"title": "a", "assigned_to": ["dev-1"]})
    activity_id = result.activity.id
    assert [a.id for a in await workspace.get_activities(dev)] == [activity_id]
    assert await workspace.get_activities(dev2) == []
    assert await workspace.mark_activity_read(dev2, activity_id) is None
    assert (await workspace.mark_activity_read(dev, activity_id)).read_by == ["dev-1"]


# === Subscriptions ===


async def test_subscriptions_are_isolated_per_user(workspace, store, admin, dev):
    admin_states, dev_states = [], []
    workspace.subscribe_to_tasks(admin, admin_states.append)
    unsubscribe_dev = workspace.subscribe_to_tasks(dev, dev_states.append)
    assert store.listener_count("tasks") == 2

    unsubscribe_dev()
    await workspace.create_task(admin, {"title": "a"})
    await store.flush()
    assert [t.title for t in admin_states[-1].items] == ["a"]
    assert dev_states == []


async def test_two_streams_for_one_user_both_receive_updates(workspace, store, admin, dev):
    first, second = [], []
    unsubscribe_first = workspace.subscribe_to_tasks(dev, first.append)
    workspace.subscribe_to_tasks(dev, second.append)
    assert store.listener_count("tasks") == 2

    await workspace.create_task(admin, {"title": "a"})
    await store.flush()
    assert [t.title for t in first[-1].items] == ["a"]
    assert [t.title for t in second[-1].items] == ["a"]

    unsubscribe_first()
    await workspace.create_task(admin, {"title": "b"})
    await store.flush()
    assert store.listener_count("tasks") == 1
    assert len(second[-1].items) == 2
    assert len(first[-1].items) == 1


async def test_notification_subscription_sees_only_own(workspace, store, admin, dev, dev2):
    states = []
    workspace.subscribe_to_notifications(dev, states.append)
    await workspace.create_task(admin, {"title": "a", "assigned_to": ["dev-1", "dev-2"]})
    await store.flush()
    assert {n.user_id for n in states[-1].items} == {"dev-1"}


async def test_close_detaches_everything(workspace, store, admin, dev):
    workspace.subscribe_to_projects(dev, lambda s: None)
    workspace.dashboard(dev)
    stop = await workspace.start_reminder_service(interval_seconds=3600)
    await workspace.close()
    stop()
    assert store.listener_count() == 0
