"""
Entity models stored as documents.
"""
from teamsync.models.base import Entity, parse_instant, utc_clock, utcnow_iso
from teamsync.models.user import User
from teamsync.models.project import Project, ProjectComment, ProjectFile, SubTask
from teamsync.models.task import Task, TaskComment
from teamsync.models.meeting import Meeting, MeetingComment
from teamsync.models.report import Report
from teamsync.models.notification import Notification
from teamsync.models.activity import Activity
from teamsync.models.reminder import SentReminder, reminder_key

__all__ = [
    "Entity",
    "parse_instant",
    "utc_clock",
    "utcnow_iso",
    "User",
    "Project",
    "ProjectComment",
    "ProjectFile",
    "SubTask",
    "Task",
    "TaskComment",
    "Meeting",
    "MeetingComment",
    "Report",
    "Notification",
    "Activity",
    "SentReminder",
    "reminder_key",
]
