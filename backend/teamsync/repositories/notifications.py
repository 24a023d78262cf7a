"""
Notification repository. Notifications are always scoped to one user.
"""
from typing import Any, Dict, List, Optional

from teamsync.models.notification import Notification
from teamsync.repositories.base import BaseRepository
from teamsync.store.base import Filter, OrderBy

NEWEST_FIRST = OrderBy("created_at", descending=True)


class NotificationRepository(BaseRepository[Notification]):
    collection = "notifications"
    model = Notification

    async def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: str = "info",
        action_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **refs,
    ) -> Notification:
        """Create an unread notification. `refs` carries project_id/task_id/meeting_id/report_id."""
        return await self._create(
            {
                "user_id": user_id,
                "title": title,
                "message": message,
                "type": type,
                "action_type": action_type,
                "read": False,
                "metadata": metadata or {},
                **refs,
            }
        )

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[Notification]:
        return await self.fetch([Filter("user_id", "==", user_id)], order_by=NEWEST_FIRST, limit=limit)

    async def list_unread(self, user_id: str) -> List[Notification]:
        return await self.fetch(
            [Filter("user_id", "==", user_id), Filter("read", "==", False)], order_by=NEWEST_FIRST
        )

    async def mark_read(self, notification_id: str) -> Optional[Notification]:
        return await self._update(notification_id, {"read": True})

    async def mark_all_read(self, user_id: str) -> int:
        unread = await self.list_unread(user_id)
        for notification in unread:
            await self._update(notification.id, {"read": True})
        return len(unread)

    async def list_for_meeting(self, user_id: str, meeting_id: str) -> List[Notification]:
        return await self.fetch(
            [Filter("user_id", "==", user_id), Filter("meeting_id", "==", meeting_id)],
            order_by=NEWEST_FIRST,
        )

    async def delete_for_project(self, project_id: str) -> int:
        notifications = await self.fetch([Filter("project_id", "==", project_id)])
        for notification in notifications:
            await self.delete(notification.id)
        return len(notifications)
