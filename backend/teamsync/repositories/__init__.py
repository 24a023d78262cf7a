"""
Entity repositories over the document store.
"""
from teamsync.repositories.base import BaseRepository, validate
from teamsync.repositories.users import UserRepository
from teamsync.repositories.projects import ProjectRepository
from teamsync.repositories.tasks import TaskRepository
from teamsync.repositories.meetings import MeetingRepository
from teamsync.repositories.reports import ReportRepository
from teamsync.repositories.notifications import NotificationRepository
from teamsync.repositories.activities import ActivityRepository
from teamsync.repositories.reminders import SentReminderRepository

__all__ = [
    "BaseRepository",
    "validate",
    "UserRepository",
    "ProjectRepository",
    "TaskRepository",
    "MeetingRepository",
    "ReportRepository",
    "NotificationRepository",
    "ActivityRepository",
    "SentReminderRepository",
]
