"""
User endpoints: sign-in, approval and presence.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.workspace import Workspace
from teamsync.models import User
from teamsync.schemas import PresenceUpdate, SignIn

router = APIRouter()


@router.post("/sign-in", response_model=User)
async def sign_in(data: SignIn, workspace: Workspace = Depends(get_workspace)):
    """Return the user record, creating an unapproved one on first sign-in."""
    return await workspace.ensure_user(data)


@router.get("/me", response_model=User)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me/presence", response_model=User)
async def update_presence(
    data: PresenceUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.set_presence(current_user, data)


@router.get("/pending", response_model=List[User])
async def list_pending_users(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Users waiting for admin approval."""
    return await workspace.get_pending_users(current_user)


@router.get("", response_model=List[User])
async def list_users(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Every user, newest first. Admin only."""
    return await workspace.get_all_users(current_user)


@router.get("/approved", response_model=List[User])
async def list_approved_users(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.get_approved_users(current_user)


@router.post("/{uid}/approve", response_model=User)
async def approve_user(
    uid: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    user = await workspace.approve_user(current_user, uid)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
async def reject_user(
    uid: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Reject a sign-up by deleting the user record."""
    if not await workspace.reject_user(current_user, uid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
