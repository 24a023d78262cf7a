"""
Meeting repository.

The `date` day key is derived from `start_time` on every write, so a stored
key never disagrees with the start time.
"""
from datetime import tzinfo
from typing import List, Optional

from teamsync.core.views import day_key
from teamsync.core.visibility import Scope
from teamsync.errors import EntityNotFoundError, ValidationError
from teamsync.models.base import parse_instant
from teamsync.models.meeting import Meeting, MeetingComment
from teamsync.repositories.base import BaseRepository, Clock, validate
from teamsync.schemas.meeting import (
    MeetingCommentCreate,
    MeetingCreate,
    MeetingStatusUpdate,
    MeetingUpdate,
)
from teamsync.store.base import Filter, OrderBy

BY_START = OrderBy("start_time")


class MeetingRepository(BaseRepository[Meeting]):
    collection = "meetings"
    model = Meeting
    protected_fields = ("id", "created_at", "updated_at", "created_by", "date")

    def __init__(self, store, clock: Optional[Clock] = None, tz: Optional[tzinfo] = None):
        super().__init__(store, clock)
        self.tz = tz

    def _derived(self, doc):
        return {"date": day_key(doc["start_time"], self.tz)}

    async def create(self, data, created_by: str) -> Meeting:
        payload = validate(MeetingCreate, data)
        return await self._create(
            {
                **payload.model_dump(),
                "created_by": created_by,
                "attendees": [],
                "comments": [],
            }
        )

    async def update(self, meeting_id: str, data) -> Optional[Meeting]:
        payload = validate(MeetingUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        existing = await self.get(meeting_id)
        if existing is None:
            return None
        # A partial update is checked against the stored side of the window
        start = changes.get("start_time") or existing.start_time
        end = changes.get("end_time", existing.end_time)
        if end and parse_instant(end) < parse_instant(start):
            raise ValidationError(
                "end_time must not be before start_time",
                [{"loc": ["end_time"], "msg": "end_time must not be before start_time"}],
            )
        return await self._update(meeting_id, changes)

    async def update_status(self, meeting_id: str, data) -> Optional[Meeting]:
        """Move a meeting to a new status. Completing it stamps end_time."""
        payload = validate(MeetingStatusUpdate, data)
        changes = {"status": payload.status}
        if payload.notes is not None:
            changes["meeting_notes"] = payload.notes
        if payload.status == "Completed":
            changes["end_time"] = self.now_iso()
        return await self._update(meeting_id, changes)

    async def add_comment(self, meeting_id: str, data, user_id: str, user_name: str) -> MeetingComment:
        payload = validate(MeetingCommentCreate, data)
        now = self.now_iso()
        comment = MeetingComment(
            id=self.store.new_id(),
            text=payload.text,
            type=payload.type,
            user_id=user_id,
            user_name=user_name,
            timestamp=now,
        )
        updated = await self._append(
            meeting_id,
            "comments",
            [comment.model_dump()],
            extra={"last_comment_at": now, "last_comment_by": user_id},
        )
        if updated is None:
            raise EntityNotFoundError(self.collection, meeting_id)
        return comment

    async def mark_attendance(self, meeting_id: str, user_id: str, attended: bool = True) -> Optional[Meeting]:
        if attended:
            return await self._append(meeting_id, "attendees", [user_id])
        existing = await self.get(meeting_id)
        if existing is None:
            return None
        return await self._update(meeting_id, {"attendees": [a for a in existing.attendees if a != user_id]})

    async def list(self) -> List[Meeting]:
        return await self.fetch(order_by=BY_START)

    async def list_for_user(self, user_id: str) -> List[Meeting]:
        """Meetings assigned to the user plus meetings for everyone, by start time."""
        assigned = await self.fetch([Filter("assigned_to", "array-contains", user_id)])
        for_all = await self.fetch([Filter("is_assigned_to_all", "==", True)])
        seen = set()
        merged = []
        for meeting in assigned + for_all:
            if meeting.id not in seen:
                seen.add(meeting.id)
                merged.append(meeting)
        return sorted(merged, key=lambda m: parse_instant(m.start_time))

    async def list_for_date(self, scope: Scope, day: str) -> List[Meeting]:
        if scope.deny_all:
            return []
        return await self.fetch(
            [Filter("date", "==", day), *scope.filters],
            order_by=BY_START,
            predicate=scope.predicate,
        )
