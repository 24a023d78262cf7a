"""
Activity feed repository.
"""
from typing import Any, Dict, Iterable, List, Optional

from teamsync.models.activity import Activity
from teamsync.repositories.base import BaseRepository
from teamsync.store.base import Filter, OrderBy

NEWEST_FIRST = OrderBy("created_at", descending=True)


class ActivityRepository(BaseRepository[Activity]):
    collection = "activities"
    model = Activity

    async def create(
        self,
        type: str,
        message: str,
        user_id: str,
        user_name: str,
        related_users: Iterable[str],
        project_id: Optional[str] = None,
        project_title: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Activity:
        related = []
        for uid in related_users:
            if uid and uid not in related:
                related.append(uid)
        return await self._create(
            {
                "type": type,
                "message": message,
                "user_id": user_id,
                "user_name": user_name,
                "project_id": project_id,
                "project_title": project_title,
                "related_users": related,
                "read_by": [],
                "metadata": metadata or {},
            }
        )

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[Activity]:
        return await self.fetch(
            [Filter("related_users", "array-contains", user_id)], order_by=NEWEST_FIRST, limit=limit
        )

    async def mark_read(self, activity_id: str, user_id: str) -> Optional[Activity]:
        return await self._append(activity_id, "read_by", [user_id], touch=False)
