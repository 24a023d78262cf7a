"""
Task request schemas.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, field_validator

from teamsync.schemas.common import check_timestamp, require_text

TaskStatus = Literal["To Do", "In Progress", "Review", "Testing", "Completed"]
TaskPriority = Literal["High", "Medium", "Low"]


class TaskCreate(BaseModel):
    title: str
    description: str = ""
    status: TaskStatus = "To Do"
    priority: TaskPriority = "Medium"
    assigned_to: List[str] = []
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    due_date: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title")

    @field_validator("due_date")
    @classmethod
    def _due(cls, v):
        return check_timestamp(v)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[List[str]] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    due_date: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title") if v is not None else v

    @field_validator("due_date")
    @classmethod
    def _due(cls, v):
        return check_timestamp(v)


class TaskFilters(BaseModel):
    status: List[str] = []
    priority: List[str] = []
    assigned_to: List[str] = []
    search: Optional[str] = None
    limit: int = 20
