"""
User request schemas.
"""
from typing import Optional
from pydantic import BaseModel


class SignIn(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    provider_id: str = "google.com"


class PresenceUpdate(BaseModel):
    is_online: bool
