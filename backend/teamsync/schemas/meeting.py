"""
Meeting request schemas.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, field_validator, model_validator

from teamsync.schemas.common import check_timestamp, check_window, require_text

MeetingStatus = Literal["Scheduled", "In Progress", "Completed", "Cancelled"]
MeetingType = Literal["Team", "Individual", "All Hands", "Client", "Other"]
MeetingPriority = Literal["Low", "Medium", "High", "Critical"]
MeetingCommentType = Literal["pre_meeting", "post_meeting", "admin_note"]


class MeetingCreate(BaseModel):
    title: str
    description: str = ""
    type: MeetingType = "Team"
    priority: MeetingPriority = "Medium"
    start_time: str
    end_time: Optional[str] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    assigned_to: List[str] = []
    is_assigned_to_all: bool = False
    status: MeetingStatus = "Scheduled"

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title")

    @field_validator("start_time")
    @classmethod
    def _start(cls, v):
        return check_timestamp(require_text(v, "start_time"))

    @field_validator("end_time")
    @classmethod
    def _end(cls, v):
        return check_timestamp(v)

    @model_validator(mode="after")
    def _window(self):
        check_window(self.start_time, self.end_time, "start_time", "end_time")
        return self


class MeetingUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[MeetingType] = None
    priority: Optional[MeetingPriority] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    assigned_to: Optional[List[str]] = None
    is_assigned_to_all: Optional[bool] = None
    status: Optional[MeetingStatus] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title") if v is not None else v

    @field_validator("start_time", "end_time")
    @classmethod
    def _times(cls, v):
        return check_timestamp(v)

    @model_validator(mode="after")
    def _window(self):
        check_window(self.start_time, self.end_time, "start_time", "end_time")
        return self


class MeetingStatusUpdate(BaseModel):
    status: MeetingStatus
    notes: Optional[str] = None


class MeetingCommentCreate(BaseModel):
    text: str
    type: MeetingCommentType = "pre_meeting"

    @field_validator("text")
    @classmethod
    def _text(cls, v):
        return require_text(v, "text")


class AttendanceUpdate(BaseModel):
    attended: bool = True
