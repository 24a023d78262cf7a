"""
Report model. Keyed by a start/end window plus a due date.
"""
from typing import List, Optional

from teamsync.models.base import Entity

REPORT_STATUSES = ("Pending", "In Progress", "Submitted", "Reviewed")


class Report(Entity):
    title: str
    description: str = ""
    status: str = "Pending"
    priority: str = "Medium"
    start_date: str
    end_date: str
    due_date: Optional[str] = None
    assigned_to: List[str] = []  # UI assigns exactly one user
    is_assigned_to_all: bool = False
    created_by: str
    submitted_at: Optional[str] = None
