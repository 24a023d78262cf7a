"""
Project request schemas.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from teamsync.schemas.common import check_timestamp, check_window, require_text

ProjectStatus = Literal["Pending", "Development", "Review", "Testing", "Fixing Bug", "Deployment", "Done"]
ProjectPriority = Literal["Low", "Medium", "High", "Critical"]


class ProjectCreate(BaseModel):
    title: str
    description: str = ""
    status: ProjectStatus = "Pending"
    priority: ProjectPriority = "Medium"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_to: List[str] = []
    progress: int = Field(0, ge=0, le=100)
    estimated_hours: float = Field(0, ge=0)
    actual_hours: float = Field(0, ge=0)

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title")

    @field_validator("start_date", "end_date")
    @classmethod
    def _dates(cls, v):
        return check_timestamp(v)

    @model_validator(mode="after")
    def _window(self):
        check_window(self.start_date, self.end_date, "start_date", "end_date")
        return self


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_to: Optional[List[str]] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title") if v is not None else v

    @field_validator("start_date", "end_date")
    @classmethod
    def _dates(cls, v):
        return check_timestamp(v)

    @model_validator(mode="after")
    def _window(self):
        check_window(self.start_date, self.end_date, "start_date", "end_date")
        return self


class CommentCreate(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _text(cls, v):
        return require_text(v, "text")


class SubTaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    assigned_to: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v):
        return require_text(v, "title")


class SubTaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    assigned_to: Optional[str] = None


class FileCreate(BaseModel):
    name: str
    url: str
    type: str
    size: int = Field(0, ge=0)
