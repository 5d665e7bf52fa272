"""Time entry model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.command import SummaryPeriod


class TimeEntryBase(BaseModel):
    """Base time entry fields."""

    project_id: str
    ticket_id: Optional[str] = None
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None


class TimeEntry(TimeEntryBase):
    """Full time entry model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class RunningEntry(BaseModel):
    """Open time entry enriched with display fields. Derived, never stored."""

    id: str
    user_id: str
    project_id: str
    project_name: str
    ticket_id: Optional[str] = None
    ticket_number: Optional[int] = None
    ticket_title: Optional[str] = None
    description: str = ""
    start_time: datetime


class TimerStart(BaseModel):
    """Request model for starting a timer from the web UI."""

    project_id: str
    ticket_id: Optional[str] = None
    description: str = ""


class TimeSummary(BaseModel):
    """Total tracked minutes for a period."""

    period: SummaryPeriod
    period_start: datetime
    period_end: datetime
    total_minutes: int
