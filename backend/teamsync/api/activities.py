"""
Activity feed endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.workspace import Workspace
from teamsync.models import Activity, User

router = APIRouter()


@router.get("", response_model=List[Activity])
async def list_activities(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Activities the caller took part in, newest first."""
    return await workspace.get_activities(current_user)


@router.put("/{activity_id}/read", response_model=Activity)
async def mark_read(
    activity_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    activity = await workspace.mark_activity_read(current_user, activity_id)
    if not activity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    return activity
