"""
Task model.
"""
from typing import List, Optional
from pydantic import BaseModel

from teamsync.models.base import Entity

TASK_STATUSES = ("To Do", "In Progress", "Review", "Testing", "Completed")
TASK_PRIORITIES = ("High", "Medium", "Low")


class TaskComment(BaseModel):
    id: str
    text: str
    user_id: str
    user_name: str
    created_at: str


class Task(Entity):
    title: str
    description: str = ""
    status: str = "To Do"
    priority: str = "Medium"
    assigned_to: List[str] = []
    created_by: str
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    due_date: Optional[str] = None
    comments: List[TaskComment] = []
    view_count: int = 0
    attachments: List[dict] = []
