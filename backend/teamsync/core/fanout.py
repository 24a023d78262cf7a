"""
Activity and notification fan-out after mutations.

Fan-out is best-effort: the mutation that triggered it has already been
written and stays written. Every failed activity or notification write is
logged and recorded on the returned FanoutResult.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from teamsync.errors import PartialFanoutFailure
from teamsync.models import Activity, Meeting, Notification, Project, Report, Task, User
from teamsync.repositories import ActivityRepository, NotificationRepository, UserRepository

logger = logging.getLogger(__name__)

# status -> (title, type)
TASK_STATUS_TEMPLATES = {
    "To Do": ("Task Reopened", "info"),
    "In Progress": ("Task In Progress", "info"),
    "Review": ("Task Ready for Review", "warning"),
    "Testing": ("Task In Testing", "warning"),
    "Completed": ("Task Completed", "success"),
}
TASK_UPDATED_TEMPLATE = ("Task Updated", "info")


def task_status_template(status: Optional[str]):
    return TASK_STATUS_TEMPLATES.get(status, TASK_UPDATED_TEMPLATE)


@dataclass
class FanoutResult:
    event: str
    activity: Optional[Activity] = None
    notifications: List[Notification] = field(default_factory=list)
    failures: List[PartialFanoutFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def notified(self) -> List[str]:
        return [n.user_id for n in self.notifications]


class NotificationFanout:
    def __init__(
        self,
        users: UserRepository,
        notifications: NotificationRepository,
        activities: ActivityRepository,
    ):
        self.users = users
        self.notifications = notifications
        self.activities = activities

    async def targets(self, user_ids: Iterable[str], exclude: Optional[str] = None) -> List[str]:
        """Approved users among `user_ids`, deduplicated, minus `exclude`."""
        ids = [uid for uid in user_ids if uid and uid != exclude]
        if not ids:
            return []
        return await self.users.approved_ids(ids)

    async def _activity(self, result: FanoutResult, related: Iterable[str], actor_id: str, **fields) -> None:
        # Ordered union: assignees first, then the actor
        related_users = list(dict.fromkeys([*related, actor_id]))
        try:
            result.activity = await self.activities.create(
                user_id=actor_id, related_users=related_users, **fields
            )
        except Exception as e:
            self._record(result, "activity", e)

    async def _notify(self, result: FanoutResult, user_ids: Iterable[str], **fields) -> None:
        for uid in user_ids:
            try:
                result.notifications.append(await self.notifications.create(user_id=uid, **fields))
            except Exception as e:
                self._record(result, f"notification for {uid}", e)

    def _record(self, result: FanoutResult, target: str, cause: Exception) -> None:
        failure = PartialFanoutFailure(result.event, target, cause)
        logger.warning("Fan-out incomplete: %s", failure)
        result.failures.append(failure)

    async def _safe_targets(self, result: FanoutResult, user_ids: Iterable[str], exclude: Optional[str] = None) -> List[str]:
        try:
            return await self.targets(user_ids, exclude)
        except Exception as e:
            self._record(result, "target list", e)
            return []

    # Projects

    async def project_created(self, project: Project, actor: User) -> FanoutResult:
        result = FanoutResult("project_created")
        assignees = await self._safe_targets(result, project.assigned_to)
        await self._activity(
            result,
            assignees,
            actor.uid,
            type="project_created",
            message=f'created project "{project.title}"',
            user_name=actor.name,
            project_id=project.id,
            project_title=project.title,
        )
        await self._notify(
            result,
            assignees,
            title="New Project Assigned",
            message=f'You have been assigned to project "{project.title}"',
            type="info",
            action_type="project_assigned",
            project_id=project.id,
        )
        return result

    async def project_status_changed(self, project: Project, actor: User, new_status: str) -> FanoutResult:
        result = FanoutResult("status_updated")
        assignees = await self._safe_targets(result, project.assigned_to + [project.created_by])
        await self._activity(
            result,
            assignees,
            actor.uid,
            type="status_updated",
            message=f'updated project status to "{new_status}"',
            user_name=actor.name,
            project_id=project.id,
            project_title=project.title,
            metadata={"new_status": new_status},
        )
        await self._notify(
            result,
            [uid for uid in assignees if uid != actor.uid],
            title="Project Status Updated",
            message=f'"{project.title}" moved to {new_status}',
            type="info",
            action_type="status_updated",
            project_id=project.id,
        )
        return result

    async def project_comment_added(self, project: Project, actor: User, text: str) -> FanoutResult:
        result = FanoutResult("comment_added")
        audience = await self._safe_targets(result, project.assigned_to + [project.created_by])
        await self._activity(
            result,
            audience,
            actor.uid,
            type="comment_added",
            message=f'added a comment on "{project.title}"',
            user_name=actor.name,
            project_id=project.id,
            project_title=project.title,
        )
        await self._notify(
            result,
            [uid for uid in audience if uid != actor.uid],
            title="New Comment",
            message=f'{actor.name} commented on "{project.title}": {text[:100]}',
            type="info",
            action_type="comment_added",
            project_id=project.id,
        )
        return result

    # Tasks

    async def task_created(self, task: Task, actor: User) -> FanoutResult:
        result = FanoutResult("task_created")
        assignees = await self._safe_targets(result, task.assigned_to)
        await self._activity(
            result,
            assignees,
            actor.uid,
            type="task_created",
            message=f'created task "{task.title}"',
            user_name=actor.name,
            project_id=task.project_id,
            project_title=task.project_name,
            metadata={"task_id": task.id},
        )
        await self._notify(
            result,
            assignees,
            title="New Task Assigned",
            message=f'You have been assigned task "{task.title}"',
            type="info",
            action_type="task_assigned",
            task_id=task.id,
            project_id=task.project_id,
        )
        return result

    async def task_updated(self, task: Task, actor: User, status_changed: bool) -> FanoutResult:
        """Notify the other assignees. The template follows the new status when it changed."""
        result = FanoutResult("task_updated")
        assignees = await self._safe_targets(result, task.assigned_to)
        title, severity = task_status_template(task.status if status_changed else None)
        message = (
            f'"{task.title}" is now {task.status}'
            if status_changed
            else f'"{task.title}" was updated by {actor.name}'
        )
        await self._activity(
            result,
            assignees,
            actor.uid,
            type="status_updated" if status_changed else "task_updated",
            message=f'updated task "{task.title}"' + (f' to "{task.status}"' if status_changed else ""),
            user_name=actor.name,
            project_id=task.project_id,
            project_title=task.project_name,
            metadata={"task_id": task.id, "new_status": task.status},
        )
        await self._notify(
            result,
            [uid for uid in assignees if uid != actor.uid],
            title=title,
            message=message,
            type=severity,
            action_type="task_updated",
            task_id=task.id,
            project_id=task.project_id,
        )
        return result

    async def task_comment_added(self, task: Task, actor: User, text: str) -> FanoutResult:
        result = FanoutResult("comment_added")
        audience = await self._safe_targets(result, task.assigned_to + [task.created_by])
        await self._activity(
            result,
            audience,
            actor.uid,
            type="comment_added",
            message=f'added a comment on task "{task.title}"',
            user_name=actor.name,
            project_id=task.project_id,
            project_title=task.project_name,
            metadata={"task_id": task.id},
        )
        await self._notify(
            result,
            [uid for uid in audience if uid != actor.uid],
            title="New Comment",
            message=f'{actor.name} commented on "{task.title}": {text[:100]}',
            type="info",
            action_type="comment_added",
            task_id=task.id,
        )
        return result

    # Meetings and reports

    async def meeting_created(self, meeting: Meeting, actor: User, day_label: str) -> FanoutResult:
        result = FanoutResult("meeting_scheduled")
        if meeting.is_assigned_to_all:
            try:
                audience = [u.uid for u in await self.users.list_approved()]
            except Exception as e:
                self._record(result, "target list", e)
                audience = []
        else:
            audience = await self._safe_targets(result, meeting.assigned_to)
        await self._activity(
            result,
            audience,
            actor.uid,
            type="meeting_scheduled",
            message=f'scheduled meeting "{meeting.title}"',
            user_name=actor.name,
            metadata={"meeting_id": meeting.id},
        )
        await self._notify(
            result,
            audience,
            title="Meeting Scheduled",
            message=f'Meeting "{meeting.title}" scheduled for {day_label}',
            type="info",
            action_type="meeting_scheduled",
            meeting_id=meeting.id,
        )
        return result

    async def report_created(self, report: Report, actor: User) -> FanoutResult:
        result = FanoutResult("report_assigned")
        if report.is_assigned_to_all:
            try:
                audience = [u.uid for u in await self.users.list_approved()]
            except Exception as e:
                self._record(result, "target list", e)
                audience = []
        else:
            audience = await self._safe_targets(result, report.assigned_to)
        await self._activity(
            result,
            audience,
            actor.uid,
            type="report_assigned",
            message=f'assigned report "{report.title}"',
            user_name=actor.name,
            metadata={"report_id": report.id},
        )
        await self._notify(
            result,
            audience,
            title="New Report Assigned",
            message=f'You have been assigned report "{report.title}"',
            type="info",
            action_type="report_assigned",
            report_id=report.id,
        )
        return result

    # Users

    async def user_approved(self, user: User) -> FanoutResult:
        result = FanoutResult("account_approved")
        await self._notify(
            result,
            [user.uid],
            title="Account Approved",
            message="Your account has been approved! You can now access the app.",
            type="success",
            action_type="account_approved",
        )
        return result
