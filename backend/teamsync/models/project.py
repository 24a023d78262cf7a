"""
Project model with embedded comments, sub-tasks and attachments.
"""
from typing import List, Optional
from pydantic import BaseModel

from teamsync.models.base import Entity

PROJECT_STATUSES = ("Pending", "Development", "Review", "Testing", "Fixing Bug", "Deployment", "Done")
PROJECT_PRIORITIES = ("Low", "Medium", "High", "Critical")


class ProjectComment(BaseModel):
    id: str
    text: str
    user_id: str
    user_name: str
    created_at: str


class SubTask(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    assigned_to: Optional[str] = None
    created_at: str
    updated_at: str


class ProjectFile(BaseModel):
    id: str
    name: str
    url: str
    type: str
    size: int = 0
    uploaded_at: str


class Project(Entity):
    title: str
    description: str = ""
    status: str = "Pending"
    priority: str = "Medium"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_to: List[str] = []
    created_by: str
    updated_by: Optional[str] = None
    progress: int = 0  # 0-100, set manually
    estimated_hours: float = 0
    actual_hours: float = 0
    comments: List[ProjectComment] = []
    sub_tasks: List[SubTask] = []
    files: List[ProjectFile] = []
    images: List[ProjectFile] = []
