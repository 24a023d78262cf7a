"""
User model for identity, role and approval state.
"""
from typing import List, Optional
from pydantic import BaseModel

ROLES = ("admin", "developer")


class User(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    provider_id: str = "google.com"
    role: str = "developer"  # 'admin', 'developer'
    approved: bool = False
    projects: List[str] = []
    is_online: bool = False
    last_seen: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None

    class Config:
        extra = "ignore"

    @property
    def id(self) -> str:
        return self.uid

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def name(self) -> str:
        return self.display_name or self.email or self.uid
