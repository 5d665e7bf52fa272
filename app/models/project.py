"""Project and ticket model definitions.

Both are managed elsewhere; the timer only reads the identifying fields it
needs to resolve a command's target and to render replies.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Project(BaseModel):
    """Project a user can track time against."""

    id: str = Field(alias="_id", serialization_alias="id")
    name: str
    hourly_rate: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = {"populate_by_name": True}


class Ticket(BaseModel):
    """Ticket within a project."""

    id: str = Field(alias="_id", serialization_alias="id")
    project_id: str
    ticket_number: int
    title: str
    status: Optional[str] = None
    priority: Optional[str] = None

    model_config = {"populate_by_name": True}
