"""
Project repository, including the embedded comment/sub-task/file arrays.
"""
from typing import List, Optional

from teamsync.errors import EntityNotFoundError
from teamsync.models.project import Project, ProjectComment, ProjectFile, SubTask
from teamsync.repositories.base import BaseRepository, validate
from teamsync.schemas.project import (
    CommentCreate,
    FileCreate,
    ProjectCreate,
    ProjectUpdate,
    SubTaskCreate,
    SubTaskUpdate,
)
from teamsync.store.base import Filter, OrderBy

RECENT_FIRST = OrderBy("updated_at", descending=True)


class ProjectRepository(BaseRepository[Project]):
    collection = "projects"
    model = Project
    protected_fields = ("id", "created_at", "updated_at", "created_by")

    async def create(self, data, created_by: str) -> Project:
        payload = validate(ProjectCreate, data)
        return await self._create(
            {
                **payload.model_dump(),
                "created_by": created_by,
                "comments": [],
                "sub_tasks": [],
                "files": [],
                "images": [],
            }
        )

    async def update(self, project_id: str, data, updated_by: Optional[str] = None) -> Optional[Project]:
        payload = validate(ProjectUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        if updated_by:
            changes["updated_by"] = updated_by
        return await self._update(project_id, changes)

    async def list(self, assigned_to: Optional[str] = None) -> List[Project]:
        filters = [Filter("assigned_to", "array-contains", assigned_to)] if assigned_to else []
        return await self.fetch(filters, order_by=RECENT_FIRST)

    async def add_comment(self, project_id: str, data, user_id: str, user_name: str) -> ProjectComment:
        payload = validate(CommentCreate, data)
        comment = ProjectComment(
            id=self.store.new_id(),
            text=payload.text,
            user_id=user_id,
            user_name=user_name,
            created_at=self.now_iso(),
        )
        if await self._append(project_id, "comments", [comment.model_dump()]) is None:
            raise EntityNotFoundError(self.collection, project_id)
        return comment

    async def add_sub_task(self, project_id: str, data) -> SubTask:
        payload = validate(SubTaskCreate, data)
        now = self.now_iso()
        sub_task = SubTask(id=self.store.new_id(), created_at=now, updated_at=now, **payload.model_dump())
        if await self._append(project_id, "sub_tasks", [sub_task.model_dump()]) is None:
            raise EntityNotFoundError(self.collection, project_id)
        return sub_task

    async def update_sub_task(self, project_id: str, sub_task_id: str, data) -> Optional[Project]:
        payload = validate(SubTaskUpdate, data)
        project = await self.get(project_id)
        if project is None:
            return None
        now = self.now_iso()
        sub_tasks = [
            {**s.model_dump(), **payload.model_dump(exclude_unset=True), "updated_at": now}
            if s.id == sub_task_id
            else s.model_dump()
            for s in project.sub_tasks
        ]
        return await self._update(project_id, {"sub_tasks": sub_tasks})

    async def add_file(self, project_id: str, data, kind: str = "files") -> ProjectFile:
        if kind not in ("files", "images"):
            raise ValueError(f"Unknown attachment kind: {kind}")
        payload = validate(FileCreate, data)
        entry = ProjectFile(id=self.store.new_id(), uploaded_at=self.now_iso(), **payload.model_dump())
        if await self._append(project_id, kind, [entry.model_dump()]) is None:
            raise EntityNotFoundError(self.collection, project_id)
        return entry
