"""
Persisted ledger of sent meeting reminders.

Document IDs are the deterministic `meeting:user:tier` key, so recording the
same reminder twice overwrites instead of duplicating.
"""
from typing import List

from teamsync.models.reminder import SentReminder, reminder_key
from teamsync.repositories.base import BaseRepository
from teamsync.store.base import Filter


class SentReminderRepository(BaseRepository[SentReminder]):
    collection = "sent_reminders"
    model = SentReminder

    async def has(self, meeting_id: str, user_id: str, tier: str) -> bool:
        return await self.store.get(self.collection, reminder_key(meeting_id, user_id, tier)) is not None

    async def record(self, meeting_id: str, user_id: str, tier: str) -> SentReminder:
        return await self._create(
            {"meeting_id": meeting_id, "user_id": user_id, "tier": tier, "sent_at": self.now_iso()},
            doc_id=reminder_key(meeting_id, user_id, tier),
        )

    async def list_for(self, meeting_id: str, user_id: str) -> List[SentReminder]:
        return await self.fetch(
            [Filter("meeting_id", "==", meeting_id), Filter("user_id", "==", user_id)]
        )

    async def clear(self, meeting_id: str, user_id: str) -> int:
        sent = await self.list_for(meeting_id, user_id)
        for reminder in sent:
            await self.delete(reminder.id)
        return len(sent)
