"""
Meetings endpoints, including countdowns and attendance.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.views import Countdown
from teamsync.core.workspace import Workspace
from teamsync.models import Meeting, MeetingComment, User
from teamsync.schemas import (
    AttendanceUpdate,
    MeetingCommentCreate,
    MeetingCreate,
    MeetingStatusUpdate,
    MeetingUpdate,
)

router = APIRouter()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting not found")


def _countdown_dict(cd: Countdown) -> Dict[str, Any]:
    left = cd.time_left
    return {
        "status": cd.status,
        "display_text": cd.display_text,
        "is_urgent": cd.is_urgent,
        "is_critical": cd.is_critical,
        "time_left": {
            "days": left.days,
            "hours": left.hours,
            "minutes": left.minutes,
            "seconds": left.seconds,
            "total_seconds": int(left.total.total_seconds()),
        },
    }


@router.get("", response_model=List[Meeting])
async def list_meetings(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.get_meetings(current_user)


@router.get("/mine", response_model=List[Meeting])
async def list_my_meetings(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Meetings assigned to the caller directly or through assign-to-all."""
    return await workspace.get_meetings_for_user(current_user)


@router.get("/upcoming", response_model=List[Meeting])
async def list_upcoming_meetings(
    limit: Optional[int] = None,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.get_upcoming_meetings(current_user.uid, limit)


@router.get("/today", response_model=List[Meeting])
async def list_todays_meetings(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.get_todays_meetings(current_user)


@router.get("/by-date/{day}", response_model=List[Meeting])
async def list_meetings_for_date(
    day: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Meetings whose start falls on `day` (YYYY-MM-DD, local time)."""
    return await workspace.get_meetings_for_date(current_user, day)


@router.post("", response_model=Meeting, status_code=status.HTTP_201_CREATED)
async def create_meeting(
    meeting_data: MeetingCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    meeting, _ = await workspace.create_meeting(current_user, meeting_data)
    return meeting


@router.get("/{meeting_id}", response_model=Meeting)
async def get_meeting(
    meeting_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    meeting = await workspace.get_meeting(current_user, meeting_id)
    if not meeting:
        raise _not_found()
    return meeting


@router.get("/{meeting_id}/countdown")
async def get_countdown(
    meeting_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    cd = await workspace.get_meeting_countdown(current_user, meeting_id)
    if cd is None:
        raise _not_found()
    return _countdown_dict(cd)


@router.put("/{meeting_id}", response_model=Meeting)
async def update_meeting(
    meeting_id: str,
    meeting_data: MeetingUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    meeting = await workspace.update_meeting(current_user, meeting_id, meeting_data)
    if not meeting:
        raise _not_found()
    return meeting


@router.put("/{meeting_id}/status", response_model=Meeting)
async def update_meeting_status(
    meeting_id: str,
    status_data: MeetingStatusUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    meeting = await workspace.update_meeting_status(current_user, meeting_id, status_data)
    if not meeting:
        raise _not_found()
    return meeting


@router.post("/{meeting_id}/comments", response_model=MeetingComment, status_code=status.HTTP_201_CREATED)
async def add_comment(
    meeting_id: str,
    comment_data: MeetingCommentCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.add_meeting_comment(current_user, meeting_id, comment_data)


@router.put("/{meeting_id}/attendance", response_model=Meeting)
async def mark_attendance(
    meeting_id: str,
    attendance: AttendanceUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    meeting = await workspace.mark_attendance(current_user, meeting_id, attendance.attended)
    if not meeting:
        raise _not_found()
    return meeting


@router.post("/{meeting_id}/clear-reminders")
async def clear_reminders(
    meeting_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Forget the caller's sent reminders for this meeting and mark them read."""
    cleared = await workspace.clear_meeting_notifications(meeting_id, current_user.uid)
    return {"cleared": cleared}


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meeting(
    meeting_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    if not await workspace.delete_meeting(current_user, meeting_id):
        raise _not_found()
