"""
Report request schemas.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, field_validator, model_validator

from teamsync.schemas.common import check_timestamp, check_window, require_text

ReportStatus = Literal["Pending", "In Progress", "Submitted", "Reviewed"]
ReportPriority = Literal["Low", "Medium", "High", "Critical"]


class ReportCreate(BaseModel):
    title: str
    description: str = ""
    status: ReportStatus = "Pending"
    priority: ReportPriority = "Medium"
    start_date: str
    end_date: str
    due_date: Optional[str] = None
    assigned_to: List[str] = []
    is_assigned_to_all: bool = False

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title")

    @field_validator("start_date", "end_date", "due_date")
    @classmethod
    def _dates(cls, v):
        return check_timestamp(v)

    @model_validator(mode="after")
    def _window(self):
        check_window(self.start_date, self.end_date, "start_date", "end_date")
        return self


class ReportUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ReportStatus] = None
    priority: Optional[ReportPriority] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    due_date: Optional[str] = None
    assigned_to: Optional[List[str]] = None
    is_assigned_to_all: Optional[bool] = None
    submitted_at: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title") if v is not None else v

    @field_validator("start_date", "end_date", "due_date", "submitted_at")
    @classmethod
    def _dates(cls, v):
        return check_timestamp(v)

    @model_validator(mode="after")
    def _window(self):
        check_window(self.start_date, self.end_date, "start_date", "end_date")
        return self
