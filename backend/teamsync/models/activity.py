"""
Activity feed model. `related_users` decides visibility, `read_by` tracks reads.
"""
from typing import List, Optional
from pydantic import BaseModel


class Activity(BaseModel):
    id: str
    type: str  # 'project_created', 'task_created', 'status_updated', 'comment_added', ...
    message: str
    user_id: str
    user_name: str
    project_id: Optional[str] = None
    project_title: Optional[str] = None
    related_users: List[str] = []
    read_by: List[str] = []
    metadata: dict = {}
    created_at: str

    class Config:
        extra = "ignore"

    def is_visible_to(self, uid: str) -> bool:
        return uid in self.related_users

    def is_unread_by(self, uid: str) -> bool:
        return uid not in self.read_by
