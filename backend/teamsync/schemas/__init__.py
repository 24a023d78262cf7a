"""
Pydantic schemas for request validation.
"""
from teamsync.schemas.project import (
    CommentCreate,
    FileCreate,
    ProjectCreate,
    ProjectUpdate,
    SubTaskCreate,
    SubTaskUpdate,
)
from teamsync.schemas.task import TaskCreate, TaskFilters, TaskUpdate
from teamsync.schemas.meeting import (
    AttendanceUpdate,
    MeetingCommentCreate,
    MeetingCreate,
    MeetingStatusUpdate,
    MeetingUpdate,
)
from teamsync.schemas.report import ReportCreate, ReportUpdate
from teamsync.schemas.user import PresenceUpdate, SignIn

__all__ = [
    "CommentCreate",
    "FileCreate",
    "ProjectCreate",
    "ProjectUpdate",
    "SubTaskCreate",
    "SubTaskUpdate",
    "TaskCreate",
    "TaskFilters",
    "TaskUpdate",
    "AttendanceUpdate",
    "MeetingCommentCreate",
    "MeetingCreate",
    "MeetingStatusUpdate",
    "MeetingUpdate",
    "ReportCreate",
    "ReportUpdate",
    "PresenceUpdate",
    "SignIn",
]
