"""
Workspace: the consumer-facing entry point.

Wires the repositories, visibility scopes, fan-out, live subscriptions and
the reminder scheduler together and enforces who may do what. The HTTP layer
and any other consumer talk to this class only.
"""
import logging
from datetime import datetime, timedelta, tzinfo
from typing import Any, Callable, Dict, List, Optional, Tuple

from teamsync.core.fanout import FanoutResult, NotificationFanout
from teamsync.core.reminders import MemoryReminderLedger, ReminderScheduler, StoreReminderLedger
from teamsync.core.subscriptions import DashboardSync, LiveState, SubscriptionManager
from teamsync.core.views import (
    Countdown,
    countdown,
    resolve_zone,
    summarize_tasks,
    task_stats,
    todays_items,
    upcoming_items,
)
from teamsync.core.visibility import visibility_scope
from teamsync.errors import PermissionDeniedError
from teamsync.models import (
    Activity,
    Meeting,
    MeetingComment,
    Notification,
    Project,
    ProjectComment,
    ProjectFile,
    Report,
    SubTask,
    Task,
    TaskComment,
    User,
    utc_clock,
)
from teamsync.repositories import (
    ActivityRepository,
    MeetingRepository,
    NotificationRepository,
    ProjectRepository,
    ReportRepository,
    SentReminderRepository,
    TaskRepository,
    UserRepository,
)
from teamsync.repositories.base import validate
from teamsync.schemas import PresenceUpdate, ProjectUpdate, TaskUpdate
from teamsync.store.base import DocumentStore, OrderBy, Unsubscribe

logger = logging.getLogger(__name__)

SUBSCRIBABLE = {
    "projects": (Project, OrderBy("updated_at", descending=True)),
    "tasks": (Task, OrderBy("updated_at", descending=True)),
    "meetings": (Meeting, OrderBy("start_time")),
    "reports": (Report, OrderBy("created_at", descending=True)),
    "notifications": (Notification, OrderBy("created_at", descending=True)),
    "activities": (Activity, OrderBy("created_at", descending=True)),
    "users": (User, OrderBy("created_at", descending=True)),
}


def _require_approved(user: Optional[User]) -> User:
    if user is None or not user.approved:
        raise PermissionDeniedError("Your account is awaiting approval")
    return user


def _require_admin(user: Optional[User]) -> User:
    _require_approved(user)
    if not user.is_admin:
        raise PermissionDeniedError("Only admins can do this")
    return user


class Workspace:
    def __init__(
        self,
        store: DocumentStore,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        reminder_ledger: str = "memory",
        reminder_interval_seconds: float = 5 * 60,
        reminder_tolerance_seconds: float = 2 * 60,
        reminder_lookahead_days: int = 7,
        activity_feed_limit: int = 50,
        notification_feed_limit: int = 50,
        upcoming_meetings_limit: int = 10,
    ):
        self.store = store
        self.clock = clock or utc_clock
        self.tz = tz
        self.activity_feed_limit = activity_feed_limit
        self.notification_feed_limit = notification_feed_limit
        self.upcoming_meetings_limit = upcoming_meetings_limit

        self.users = UserRepository(store, self.clock)
        self.projects = ProjectRepository(store, self.clock)
        self.tasks = TaskRepository(store, self.clock)
        self.meetings = MeetingRepository(store, self.clock, tz)
        self.reports = ReportRepository(store, self.clock, tz)
        self.notifications = NotificationRepository(store, self.clock)
        self.activities = ActivityRepository(store, self.clock)
        self.sent_reminders = SentReminderRepository(store, self.clock)
        self.fanout = NotificationFanout(self.users, self.notifications, self.activities)

        if reminder_ledger == "store":
            self.reminder_ledger = StoreReminderLedger(self.sent_reminders)
        else:
            self.reminder_ledger = MemoryReminderLedger()
        self.reminder_interval_seconds = reminder_interval_seconds
        self.reminder_tolerance = timedelta(seconds=reminder_tolerance_seconds)
        self.reminder_lookahead = timedelta(days=reminder_lookahead_days)

        self._schedulers: List[ReminderScheduler] = []
        self._subscriptions: List[SubscriptionManager] = []
        self._dashboards: List[DashboardSync] = []

    @classmethod
    def from_settings(cls, store: DocumentStore, settings) -> "Workspace":
        return cls(
            store,
            tz=resolve_zone(settings.timezone),
            reminder_ledger=settings.reminder_ledger,
            reminder_interval_seconds=settings.reminder_interval_seconds,
            reminder_tolerance_seconds=settings.reminder_tolerance_seconds,
            reminder_lookahead_days=settings.reminder_lookahead_days,
            activity_feed_limit=settings.activity_feed_limit,
            notification_feed_limit=settings.notification_feed_limit,
            upcoming_meetings_limit=settings.upcoming_meetings_limit,
        )

    def _visible(self, user: Optional[User], collection: str, entity) -> bool:
        return visibility_scope(user, collection).allows(entity.model_dump())

    # Users

    async def ensure_user(self, data) -> User:
        return await self.users.ensure_user(data)

    async def get_user(self, uid: str) -> Optional[User]:
        return await self.users.get(uid)

    async def update_user(self, actor: User, uid: str, **changes) -> Optional[User]:
        if actor.uid != uid:
            _require_admin(actor)
        return await self.users.update_user(uid, **changes)

    async def approve_user(self, actor: User, uid: str) -> Optional[User]:
        _require_admin(actor)
        user = await self.users.approve(uid)
        if user is not None:
            await self.fanout.user_approved(user)
        return user

    async def reject_user(self, actor: User, uid: str) -> bool:
        _require_admin(actor)
        return await self.users.delete(uid)

    async def get_pending_users(self, actor: User) -> List[User]:
        _require_admin(actor)
        return await self.users.list_pending()

    async def get_approved_users(self, actor: User) -> List[User]:
        _require_approved(actor)
        return await self.users.list_approved()

    async def get_all_users(self, actor: User) -> List[User]:
        _require_admin(actor)
        return await self.users.list_all()

    async def set_presence(self, actor: User, data) -> Optional[User]:
        payload = validate(PresenceUpdate, data)
        return await self.users.set_presence(actor.uid, payload.is_online)

    # Projects

    async def get_projects(self, user: User) -> List[Project]:
        return await self.projects.list_in_scope(
            visibility_scope(user, "projects"), order_by=OrderBy("updated_at", descending=True)
        )

    async def get_project(self, user: User, project_id: str) -> Optional[Project]:
        project = await self.projects.get(project_id)
        if project is None or not self._visible(user, "projects", project):
            return None
        return project

    async def create_project(self, actor: User, data) -> Tuple[Project, FanoutResult]:
        _require_admin(actor)
        project = await self.projects.create(data, created_by=actor.uid)
        await self.sync_project_with_users(project.id, project.assigned_to)
        return project, await self.fanout.project_created(project, actor)

    async def update_project(self, actor: User, project_id: str, data) -> Optional[Project]:
        """Admins and assigned developers may update. id, created_at and created_by never change."""
        _require_approved(actor)
        payload = validate(ProjectUpdate, data)
        existing = await self.projects.get(project_id)
        if existing is None:
            return None
        if not actor.is_admin and actor.uid not in existing.assigned_to:
            raise PermissionDeniedError("Only admins or assigned developers can update this project")

        changes = payload.model_dump(exclude_unset=True)
        project = await self.projects.update(project_id, payload, updated_by=actor.uid)
        if project is None:
            return None
        if "assigned_to" in changes:
            await self.sync_project_with_users(project_id, project.assigned_to)
        if "status" in changes and changes["status"] != existing.status:
            await self.fanout.project_status_changed(project, actor, project.status)
        return project

    async def delete_project(self, actor: User, project_id: str) -> bool:
        _require_admin(actor)
        deleted = await self.projects.delete(project_id)
        if deleted:
            await self.notifications.delete_for_project(project_id)
        return deleted

    async def sync_project_with_users(self, project_id: str, user_ids: List[str]) -> List[str]:
        """Add the project to each user's project list. Returns the users that could not be updated."""
        failed = []
        for uid in user_ids:
            try:
                if await self.users.add_project(uid, project_id) is None:
                    failed.append(uid)
            except Exception as e:
                logger.warning("Failed to add project %s to user %s: %s", project_id, uid, e)
                failed.append(uid)
        return failed

    async def add_project_comment(self, actor: User, project_id: str, data) -> ProjectComment:
        _require_approved(actor)
        comment = await self.projects.add_comment(project_id, data, actor.uid, actor.name)
        project = await self.projects.get(project_id)
        if project is not None:
            await self.fanout.project_comment_added(project, actor, comment.text)
        return comment

    async def add_sub_task(self, actor: User, project_id: str, data) -> SubTask:
        _require_approved(actor)
        return await self.projects.add_sub_task(project_id, data)

    async def update_sub_task(self, actor: User, project_id: str, sub_task_id: str, data) -> Optional[Project]:
        _require_approved(actor)
        return await self.projects.update_sub_task(project_id, sub_task_id, data)

    async def add_project_file(self, actor: User, project_id: str, data, kind: str = "files") -> ProjectFile:
        _require_approved(actor)
        return await self.projects.add_file(project_id, data, kind)

    # Tasks

    async def get_tasks(self, user: User, filters=None) -> List[Task]:
        if visibility_scope(user, "tasks").deny_all:
            return []
        if filters:
            return await self.tasks.list_filtered(filters)
        return await self.tasks.list()

    async def get_tasks_page(self, user: User, limit: int, start_after: Optional[str] = None):
        if visibility_scope(user, "tasks").deny_all:
            return [], None
        return await self.tasks.list_page(limit, start_after)

    async def get_task(self, user: User, task_id: str) -> Optional[Task]:
        task = await self.tasks.get(task_id)
        if task is None or not self._visible(user, "tasks", task):
            return None
        return task

    async def create_task(self, actor: User, data) -> Tuple[Task, FanoutResult]:
        _require_approved(actor)
        task = await self.tasks.create(data, created_by=actor.uid)
        return task, await self.fanout.task_created(task, actor)

    async def update_task(self, actor: User, task_id: str, data) -> Optional[Task]:
        _require_approved(actor)
        payload = validate(TaskUpdate, data)
        existing = await self.tasks.get(task_id)
        if existing is None:
            return None
        task = await self.tasks.update(task_id, payload)
        if task is None:
            return None
        status_changed = "status" in payload.model_fields_set and task.status != existing.status
        await self.fanout.task_updated(task, actor, status_changed)
        return task

    async def delete_task(self, actor: User, task_id: str) -> bool:
        _require_approved(actor)
        return await self.tasks.delete(task_id)

    async def add_task_comment(self, actor: User, task_id: str, data) -> TaskComment:
        _require_approved(actor)
        comment = await self.tasks.add_comment(task_id, data, actor.uid, actor.name)
        task = await self.tasks.get(task_id)
        if task is not None:
            await self.fanout.task_comment_added(task, actor, comment.text)
        return comment

    async def view_task(self, user: User, task_id: str) -> Optional[Task]:
        if await self.get_task(user, task_id) is None:
            return None
        return await self.tasks.increment_views(task_id)

    async def _tasks_for(self, user: User, user_id: Optional[str]) -> List[Task]:
        if visibility_scope(user, "tasks").deny_all:
            return []
        return await self.tasks.list_for_user(user_id) if user_id else await self.tasks.list()

    async def get_task_summary(self, user: User, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Summary over all tasks, or over the tasks assigned to `user_id`. Empty for unapproved users."""
        return summarize_tasks(await self._tasks_for(user, user_id))

    async def get_task_stats(
        self, user: User, start: str, end: str, user_id: Optional[str] = None
    ) -> Dict[str, int]:
        return task_stats(await self._tasks_for(user, user_id), start, end, self.clock())

    # Meetings

    async def get_meetings(self, user: User) -> List[Meeting]:
        return await self.meetings.list_in_scope(visibility_scope(user, "meetings"), order_by=OrderBy("start_time"))

    async def get_meeting(self, user: User, meeting_id: str) -> Optional[Meeting]:
        meeting = await self.meetings.get(meeting_id)
        if meeting is None or not self._visible(user, "meetings", meeting):
            return None
        return meeting

    async def get_meetings_for_user(self, user: User) -> List[Meeting]:
        """Meetings assigned to `user` directly or through assign-to-all."""
        if visibility_scope(user, "meetings").deny_all:
            return []
        return await self.meetings.list_for_user(user.uid)

    async def get_meetings_for_date(self, user: User, day: str) -> List[Meeting]:
        return await self.meetings.list_for_date(visibility_scope(user, "meetings"), day)

    async def get_todays_meetings(self, user: User) -> List[Meeting]:
        return todays_items(await self.get_meetings(user), self.clock(), tz=self.tz)

    async def get_upcoming_meetings(self, user_id: str, limit: Optional[int] = None) -> List[Meeting]:
        user = await self.users.get(user_id)
        if user is None or not user.approved:
            return []
        meetings = await self.meetings.list_for_user(user_id)
        return upcoming_items(meetings, self.clock(), limit=limit or self.upcoming_meetings_limit)

    async def get_meeting_countdown(self, user: User, meeting_id: str) -> Optional[Countdown]:
        meeting = await self.get_meeting(user, meeting_id)
        if meeting is None:
            return None
        return countdown(meeting, self.clock())

    async def create_meeting(self, actor: User, data) -> Tuple[Meeting, FanoutResult]:
        _require_approved(actor)
        meeting = await self.meetings.create(data, created_by=actor.uid)
        return meeting, await self.fanout.meeting_created(meeting, actor, meeting.date)

    async def update_meeting(self, actor: User, meeting_id: str, data) -> Optional[Meeting]:
        _require_approved(actor)
        return await self.meetings.update(meeting_id, data)

    async def update_meeting_status(self, actor: User, meeting_id: str, data) -> Optional[Meeting]:
        _require_approved(actor)
        return await self.meetings.update_status(meeting_id, data)

    async def add_meeting_comment(self, actor: User, meeting_id: str, data) -> MeetingComment:
        _require_approved(actor)
        return await self.meetings.add_comment(meeting_id, data, actor.uid, actor.name)

    async def mark_attendance(self, actor: User, meeting_id: str, attended: bool = True) -> Optional[Meeting]:
        _require_approved(actor)
        return await self.meetings.mark_attendance(meeting_id, actor.uid, attended)

    async def delete_meeting(self, actor: User, meeting_id: str) -> bool:
        _require_approved(actor)
        return await self.meetings.delete(meeting_id)

    # Reports

    async def get_reports(self, user: User) -> List[Report]:
        return await self.reports.list_in_scope(
            visibility_scope(user, "reports"), order_by=OrderBy("created_at", descending=True)
        )

    async def get_report(self, user: User, report_id: str) -> Optional[Report]:
        report = await self.reports.get(report_id)
        if report is None or not self._visible(user, "reports", report):
            return None
        return report

    async def get_reports_for_date(self, user: User, day: str) -> List[Report]:
        return await self.reports.list_for_date(visibility_scope(user, "reports"), day)

    async def create_report(self, actor: User, data) -> Tuple[Report, FanoutResult]:
        _require_approved(actor)
        report = await self.reports.create(data, created_by=actor.uid)
        return report, await self.fanout.report_created(report, actor)

    async def update_report(self, actor: User, report_id: str, data) -> Optional[Report]:
        _require_approved(actor)
        return await self.reports.update(report_id, data)

    async def delete_report(self, actor: User, report_id: str) -> bool:
        _require_approved(actor)
        return await self.reports.delete(report_id)

    # Notifications and activities

    async def get_notifications(self, user: User) -> List[Notification]:
        if visibility_scope(user, "notifications").deny_all:
            return []
        return await self.notifications.list_for_user(user.uid, limit=self.notification_feed_limit)

    async def _own_notification(self, user: User, notification_id: str) -> Optional[Notification]:
        notification = await self.notifications.get(notification_id)
        if notification is None or notification.user_id != user.uid:
            return None
        return notification

    async def mark_notification_read(self, user: User, notification_id: str) -> Optional[Notification]:
        if await self._own_notification(user, notification_id) is None:
            return None
        return await self.notifications.mark_read(notification_id)

    async def mark_all_notifications_read(self, user: User) -> int:
        return await self.notifications.mark_all_read(user.uid)

    async def delete_notification(self, user: User, notification_id: str) -> bool:
        if await self._own_notification(user, notification_id) is None:
            return False
        return await self.notifications.delete(notification_id)

    async def get_activities(self, user: User) -> List[Activity]:
        if visibility_scope(user, "activities").deny_all:
            return []
        return await self.activities.list_for_user(user.uid, limit=self.activity_feed_limit)

    async def mark_activity_read(self, user: User, activity_id: str) -> Optional[Activity]:
        activity = await self.activities.get(activity_id)
        if activity is None or not activity.is_visible_to(user.uid):
            return None
        return await self.activities.mark_read(activity_id, user.uid)

    # Live subscriptions

    def subscribe(self, user: Optional[User], collection: str, callback: Callable[[LiveState], None]) -> Unsubscribe:
        """Live view of one collection as `user` sees it.

        Every call owns its own listener, so two streams for the same user never
        replace each other. Call the returned function to stop this one.
        """
        model, order_by = SUBSCRIBABLE[collection]
        manager = SubscriptionManager(self.store)
        self._subscriptions.append(manager)
        limit = None
        if collection == "notifications":
            limit = self.notification_feed_limit
        elif collection == "activities":
            limit = self.activity_feed_limit
        manager.subscribe(
            visibility_scope(user, collection),
            callback,
            to_entity=model.model_validate,
            order_by=order_by,
            limit=limit,
        )

        def unsubscribe() -> None:
            manager.unsubscribe_all()
            if manager in self._subscriptions:
                self._subscriptions.remove(manager)

        return unsubscribe

    def subscribe_to_projects(self, user, callback) -> Unsubscribe:
        return self.subscribe(user, "projects", callback)

    def subscribe_to_tasks(self, user, callback) -> Unsubscribe:
        return self.subscribe(user, "tasks", callback)

    def subscribe_to_meetings(self, user, callback) -> Unsubscribe:
        return self.subscribe(user, "meetings", callback)

    def subscribe_to_notifications(self, user, callback) -> Unsubscribe:
        return self.subscribe(user, "notifications", callback)

    def subscribe_to_activities(self, user, callback) -> Unsubscribe:
        return self.subscribe(user, "activities", callback)

    def dashboard(self, user: Optional[User]) -> DashboardSync:
        """A started dashboard sync for `user`. Call `stop()` on it when done."""
        sync = DashboardSync(
            self.store, user, clock=self.clock, tz=self.tz, upcoming_limit=self.upcoming_meetings_limit
        )
        self._dashboards.append(sync)
        sync.start()
        return sync

    def release_dashboard(self, sync: DashboardSync) -> None:
        sync.stop()
        if sync in self._dashboards:
            self._dashboards.remove(sync)

    # Reminders

    def reminder_scheduler(self, interval_seconds: Optional[float] = None) -> ReminderScheduler:
        return ReminderScheduler(
            self.meetings,
            self.notifications,
            self.users,
            ledger=self.reminder_ledger,
            clock=self.clock,
            tz=self.tz,
            interval_seconds=interval_seconds or self.reminder_interval_seconds,
            tolerance=self.reminder_tolerance,
            lookahead=self.reminder_lookahead,
        )

    async def start_reminder_service(
        self, user_id: Optional[str] = None, interval_seconds: Optional[float] = None
    ) -> Callable[[], None]:
        """Sweep now and then every interval. Returns a function that stops the service."""
        scheduler = self.reminder_scheduler(interval_seconds)
        self._schedulers.append(scheduler)
        await scheduler.start(user_id)

        def stop() -> None:
            scheduler.stop()
            if scheduler in self._schedulers:
                self._schedulers.remove(scheduler)

        return stop

    async def clear_meeting_notifications(self, meeting_id: str, user_id: str) -> int:
        return await self.reminder_scheduler().clear_meeting_notifications(meeting_id, user_id)

    async def close(self) -> None:
        for scheduler in list(self._schedulers):
            scheduler.stop()
        self._schedulers.clear()
        for sync in list(self._dashboards):
            sync.stop()
        self._dashboards.clear()
        for manager in list(self._subscriptions):
            manager.unsubscribe_all()
        self._subscriptions.clear()
        await self.store.close()
