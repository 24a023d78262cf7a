"""
Projects endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.workspace import Workspace
from teamsync.models import Project, ProjectComment, ProjectFile, SubTask, User
from teamsync.schemas import (
    CommentCreate,
    FileCreate,
    ProjectCreate,
    ProjectUpdate,
    SubTaskCreate,
    SubTaskUpdate,
)

router = APIRouter()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")


@router.get("", response_model=List[Project])
async def list_projects(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """List the projects visible to the caller."""
    return await workspace.get_projects(current_user)


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Create a new project. Admin only."""
    project, _ = await workspace.create_project(current_user, project_data)
    return project


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    project = await workspace.get_project(current_user, project_id)
    if not project:
        raise _not_found()
    return project


@router.put("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    project = await workspace.update_project(current_user, project_id, project_data)
    if not project:
        raise _not_found()
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    if not await workspace.delete_project(current_user, project_id):
        raise _not_found()


@router.post("/{project_id}/comments", response_model=ProjectComment, status_code=status.HTTP_201_CREATED)
async def add_comment(
    project_id: str,
    comment_data: CommentCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.add_project_comment(current_user, project_id, comment_data)


@router.post("/{project_id}/sub-tasks", response_model=SubTask, status_code=status.HTTP_201_CREATED)
async def add_sub_task(
    project_id: str,
    sub_task_data: SubTaskCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.add_sub_task(current_user, project_id, sub_task_data)


@router.put("/{project_id}/sub-tasks/{sub_task_id}", response_model=Project)
async def update_sub_task(
    project_id: str,
    sub_task_id: str,
    sub_task_data: SubTaskUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    project = await workspace.update_sub_task(current_user, project_id, sub_task_id, sub_task_data)
    if not project:
        raise _not_found()
    return project


@router.post("/{project_id}/files", response_model=ProjectFile, status_code=status.HTTP_201_CREATED)
async def add_file(
    project_id: str,
    file_data: FileCreate,
    kind: str = "files",
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Attach an already-uploaded file (kind=files) or image (kind=images)."""
    if kind not in ("files", "images"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="kind must be 'files' or 'images'")
    return await workspace.add_project_file(current_user, project_id, file_data, kind)
