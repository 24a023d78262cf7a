"""
Shared FastAPI dependencies.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from teamsync.core.workspace import Workspace
from teamsync.models import User


def get_workspace(request: Request) -> Workspace:
    return request.app.state.workspace


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    workspace: Workspace = Depends(get_workspace),
) -> User:
    """Resolve the caller from the X-User-Id header. Identity is verified upstream."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    user = await workspace.get_user(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    return user
