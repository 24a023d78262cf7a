"""
Tasks endpoints.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.workspace import Workspace
from teamsync.models import Task, TaskComment, User
from teamsync.schemas import CommentCreate, TaskCreate, TaskFilters, TaskUpdate

router = APIRouter()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")


@router.get("", response_model=List[Task])
async def list_tasks(
    status_filter: Optional[List[str]] = Query(None, alias="status"),
    priority: Optional[List[str]] = Query(None),
    assigned_to: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """List tasks. Any filter narrows the result; without filters every task is returned."""
    if not any([status_filter, priority, assigned_to, search, limit]):
        return await workspace.get_tasks(current_user)
    filters = TaskFilters(
        status=status_filter or [],
        priority=priority or [],
        assigned_to=assigned_to or [],
        search=search,
        limit=limit or 20,
    )
    return await workspace.get_tasks(current_user, filters)


@router.get("/summary")
async def task_summary(
    user_id: Optional[str] = None,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    """Counts by status and priority plus the five most recently updated tasks."""
    summary = await workspace.get_task_summary(current_user, user_id)
    summary["recently_updated"] = [t.model_dump() for t in summary["recently_updated"]]
    return summary


@router.get("/page")
async def task_page(
    limit: int = Query(20, ge=1, le=500),
    start_after: Optional[str] = None,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    """One page of tasks, newest first, with the cursor for the next page."""
    tasks, cursor = await workspace.get_tasks_page(current_user, limit, start_after)
    return {"items": [t.model_dump() for t in tasks], "next_cursor": cursor}


@router.get("/stats")
async def task_stats(
    start: str,
    end: str,
    user_id: Optional[str] = None,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
) -> Dict[str, int]:
    return await workspace.get_task_stats(current_user, start, end, user_id)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    task, _ = await workspace.create_task(current_user, task_data)
    return task


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    task = await workspace.view_task(current_user, task_id)
    if not task:
        raise _not_found()
    return task


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    task = await workspace.update_task(current_user, task_id, task_data)
    if not task:
        raise _not_found()
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    if not await workspace.delete_task(current_user, task_id):
        raise _not_found()


@router.post("/{task_id}/comments", response_model=TaskComment, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: str,
    comment_data: CommentCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.add_task_comment(current_user, task_id, comment_data)
