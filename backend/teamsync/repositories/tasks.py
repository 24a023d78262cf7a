"""
Task repository.
"""
from typing import Any, List, Optional, Tuple

from teamsync.errors import EntityNotFoundError
from teamsync.models.task import Task, TaskComment
from teamsync.repositories.base import BaseRepository, validate
from teamsync.schemas.project import CommentCreate
from teamsync.schemas.task import TaskCreate, TaskFilters, TaskUpdate
from teamsync.store.base import Filter, OrderBy

RECENT_FIRST = OrderBy("updated_at", descending=True)


class TaskRepository(BaseRepository[Task]):
    collection = "tasks"
    model = Task
    protected_fields = ("id", "created_at", "updated_at", "created_by")

    async def create(self, data, created_by: str) -> Task:
        payload = validate(TaskCreate, data)
        return await self._create(
            {
                **payload.model_dump(),
                "created_by": created_by,
                "comments": [],
                "view_count": 0,
                "attachments": [],
            }
        )

    async def update(self, task_id: str, data) -> Optional[Task]:
        payload = validate(TaskUpdate, data)
        return await self._update(task_id, payload.model_dump(exclude_unset=True))

    async def list(self) -> List[Task]:
        return await self.fetch(order_by=RECENT_FIRST)

    async def list_for_user(self, user_id: str) -> List[Task]:
        return await self.fetch([Filter("assigned_to", "array-contains", user_id)], order_by=RECENT_FIRST)

    async def list_filtered(self, filters=None) -> List[Task]:
        """
        Tasks matching any of the given statuses, priorities and assignees,
        plus a case-insensitive title/description search.
        """
        f = validate(TaskFilters, filters or {})
        store_filters = []
        if f.status:
            store_filters.append(Filter("status", "in", list(f.status)))
        if f.priority:
            store_filters.append(Filter("priority", "in", list(f.priority)))
        wanted = set(f.assigned_to)
        term = (f.search or "").strip().lower()

        def predicate(doc) -> bool:
            if wanted and not wanted.intersection(doc.get("assigned_to") or []):
                return False
            if term:
                haystack = f"{doc.get('title', '')} {doc.get('description', '')}".lower()
                return term in haystack
            return True

        return await self.fetch(store_filters, order_by=RECENT_FIRST, limit=f.limit, predicate=predicate)

    async def list_page(self, limit: int, start_after: Optional[str] = None) -> Tuple[List[Task], Optional[str]]:
        """Page through tasks, newest first. Returns the page and the cursor for the next one."""
        tasks = await self.list()
        if start_after:
            ids = [t.id for t in tasks]
            if start_after in ids:
                tasks = tasks[ids.index(start_after) + 1:]
        page = tasks[:limit]
        cursor = page[-1].id if len(page) == limit and len(tasks) > limit else None
        return page, cursor

    async def add_comment(self, task_id: str, data, user_id: str, user_name: str) -> TaskComment:
        payload = validate(CommentCreate, data)
        comment = TaskComment(
            id=self.store.new_id(),
            text=payload.text,
            user_id=user_id,
            user_name=user_name,
            created_at=self.now_iso(),
        )
        if await self._append(task_id, "comments", [comment.model_dump()]) is None:
            raise EntityNotFoundError(self.collection, task_id)
        return comment

    async def increment_views(self, task_id: str) -> Optional[Task]:
        task = await self.get(task_id)
        if task is None:
            return None
        return await self._update(task_id, {"view_count": task.view_count + 1})
