"""
Reports endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.workspace import Workspace
from teamsync.models import Report, User
from teamsync.schemas import ReportCreate, ReportUpdate

router = APIRouter()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")


@router.get("", response_model=List[Report])
async def list_reports(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    return await workspace.get_reports(current_user)


@router.get("/by-date/{day}", response_model=List[Report])
async def list_reports_for_date(
    day: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Reports due on `day` (YYYY-MM-DD, local time)."""
    return await workspace.get_reports_for_date(current_user, day)


@router.post("", response_model=Report, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    report, _ = await workspace.create_report(current_user, report_data)
    return report


@router.get("/{report_id}", response_model=Report)
async def get_report(
    report_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    report = await workspace.get_report(current_user, report_id)
    if not report:
        raise _not_found()
    return report


@router.put("/{report_id}", response_model=Report)
async def update_report(
    report_id: str,
    report_data: ReportUpdate,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    report = await workspace.update_report(current_user, report_id, report_data)
    if not report:
        raise _not_found()
    return report


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    if not await workspace.delete_report(current_user, report_id):
        raise _not_found()
