"""
Meeting model. start_time/end_time define a half-open interval and `date`
is the day key derived from start_time.
"""
from typing import List, Optional
from pydantic import BaseModel

from teamsync.models.base import Entity

MEETING_STATUSES = ("Scheduled", "In Progress", "Completed", "Cancelled")
MEETING_TYPES = ("Team", "Individual", "All Hands", "Client", "Other")
MEETING_COMMENT_TYPES = ("pre_meeting", "post_meeting", "admin_note")


class MeetingComment(BaseModel):
    id: str
    text: str
    user_id: str
    user_name: str
    type: str = "pre_meeting"  # 'pre_meeting', 'post_meeting', 'admin_note'
    timestamp: str


class Meeting(Entity):
    title: str
    description: str = ""
    type: str = "Team"
    priority: str = "Medium"
    start_time: str
    end_time: Optional[str] = None
    date: str
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    assigned_to: List[str] = []
    is_assigned_to_all: bool = False
    status: str = "Scheduled"
    attendees: List[str] = []
    comments: List[MeetingComment] = []
    meeting_notes: Optional[str] = None
    last_comment_at: Optional[str] = None
    last_comment_by: Optional[str] = None
    created_by: str
