"""Timer endpoints - time tracking from the web UI."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import settings
from app.database import get_timer_credential
from app.errors import AppError
from app.models.command import SummaryPeriod
from app.models.time_entry import RunningEntry, TimeEntry, TimerStart, TimeSummary
from app.routers.auth import get_current_user_id
from app.services.timer_service import TimerService


router = APIRouter(prefix="/timers", tags=["timers"])


@router.post("/start", response_model=RunningEntry)
async def start_timer(
    timer_start: TimerStart,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_timer_credential),
):
    """
    Start a new timer.

    - Requires authentication
    - Only one timer can run at a time (409 otherwise)
    - Project and ticket must exist (404 otherwise)
    - Returns the stored entry so the UI can refresh from it directly
    """
    service = TimerService(db, settings.timezone)
    try:
        return await service.start_by_project_id(
            user_id=user_id,
            project_id=timer_start.project_id,
            ticket_id=timer_start.ticket_id,
            description=timer_start.description,
        )
    except AppError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/stop", response_model=TimeEntry)
async def stop_timer(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_timer_credential),
):
    """
    Stop the currently running timer.

    - Requires authentication
    - Returns 404 if no timer is running
    """
    service = TimerService(db, settings.timezone)
    try:
        return await service.stop_timer(user_id=user_id)
    except AppError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/current", response_model=RunningEntry)
async def get_current_timer(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_timer_credential),
):
    """
    Get the currently running timer, if any.

    - Requires authentication
    - Returns 404 if no timer is running
    """
    service = TimerService(db, settings.timezone)
    try:
        entry = await service.get_running_entry(user_id=user_id)
    except AppError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    if not entry:
        raise HTTPException(status_code=404, detail="No timer running")

    return entry


@router.get("/summary", response_model=TimeSummary)
async def get_summary(
    period: SummaryPeriod = Query(SummaryPeriod.TODAY),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_timer_credential),
):
    """
    Total tracked minutes for today, this week or this month.

    - Requires authentication
    - Only stopped entries count
    """
    service = TimerService(db, settings.timezone)
    try:
        return await service.summary(user_id=user_id, period=period)
    except AppError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("", response_model=list[TimeEntry])
async def list_entries(
    project_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_timer_credential),
):
    """
    List time entries for the authenticated user.

    - Requires authentication
    - Optional filters: project_id, start_date, end_date
    - Results sorted by start_time descending (most recent first)
    """
    service = TimerService(db, settings.timezone)
    try:
        return await service.list_entries(
            user_id=user_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
        )
    except AppError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
