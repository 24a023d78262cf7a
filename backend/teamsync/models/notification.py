"""
Notification model. Always scoped to exactly one user.
"""
from typing import Optional
from pydantic import BaseModel

NOTIFICATION_TYPES = ("info", "success", "warning", "error")


class Notification(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: str = "info"  # 'info', 'success', 'warning', 'error'
    action_type: Optional[str] = None  # 'project_assigned', 'task_updated', 'meeting_reminder', ...
    read: bool = False
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    meeting_id: Optional[str] = None
    report_id: Optional[str] = None
    metadata: dict = {}
    created_at: str

    class Config:
        extra = "ignore"
