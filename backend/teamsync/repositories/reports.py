"""
Report repository.
"""
from datetime import tzinfo
from typing import List, Optional

from teamsync.core.views import day_key
from teamsync.core.visibility import Scope
from teamsync.errors import ValidationError
from teamsync.models.base import parse_instant
from teamsync.models.report import Report
from teamsync.repositories.base import BaseRepository, Clock, validate
from teamsync.schemas.report import ReportCreate, ReportUpdate
from teamsync.store.base import Filter, OrderBy

NEWEST_FIRST = OrderBy("created_at", descending=True)


class ReportRepository(BaseRepository[Report]):
    collection = "reports"
    model = Report
    protected_fields = ("id", "created_at", "updated_at", "created_by")

    def __init__(self, store, clock: Optional[Clock] = None, tz: Optional[tzinfo] = None):
        super().__init__(store, clock)
        self.tz = tz

    async def create(self, data, created_by: str) -> Report:
        payload = validate(ReportCreate, data)
        return await self._create({**payload.model_dump(), "created_by": created_by})

    async def update(self, report_id: str, data) -> Optional[Report]:
        payload = validate(ReportUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        existing = await self.get(report_id)
        if existing is None:
            return None
        start = changes.get("start_date") or existing.start_date
        end = changes.get("end_date") or existing.end_date
        if parse_instant(end) < parse_instant(start):
            raise ValidationError(
                "end_date must not be before start_date",
                [{"loc": ["end_date"], "msg": "end_date must not be before start_date"}],
            )
        if changes.get("status") == "Submitted" and not existing.submitted_at:
            changes.setdefault("submitted_at", self.now_iso())
        return await self._update(report_id, changes)

    async def list(self) -> List[Report]:
        return await self.fetch(order_by=NEWEST_FIRST)

    async def list_for_user(self, user_id: str) -> List[Report]:
        """Reports assigned to the user plus reports for everyone, newest first."""
        assigned = await self.fetch([Filter("assigned_to", "array-contains", user_id)])
        for_all = await self.fetch([Filter("is_assigned_to_all", "==", True)])
        by_id = {r.id: r for r in assigned + for_all}
        return sorted(by_id.values(), key=lambda r: r.created_at, reverse=True)

    async def list_for_date(self, scope: Scope, day: str) -> List[Report]:
        """Visible reports due on `day`, earliest due first."""
        reports = await self.list_in_scope(scope)
        due = [r for r in reports if r.due_date and day_key(r.due_date, self.tz) == day]
        return sorted(due, key=lambda r: parse_instant(r.due_date))
