"""
Notification feed endpoints. Callers only ever see their own notifications.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.workspace import Workspace
from teamsync.models import Notification, User

router = APIRouter()


@router.get("", response_model=List[Notification])
async def list_notifications(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.get_notifications(current_user)


@router.put("/read-all")
async def mark_all_read(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    count = await workspace.mark_all_notifications_read(current_user)
    return {"updated": count}


@router.put("/{notification_id}/read", response_model=Notification)
async def mark_read(
    notification_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    notification = await workspace.mark_notification_read(current_user, notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    if not await workspace.delete_notification(current_user, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
