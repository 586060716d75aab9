"""
Request and response DTOs for the steps API.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from src.core.service.steps.models import DailyEntry


class StepReportRequestDTO(BaseModel):
    """Request model for reporting a day's steps."""

    steps: int = Field(..., ge=0, description="Step count for the day; replaces any earlier report")
    day: Optional[date] = Field(None, description="Calendar day (YYYY-MM-DD); defaults to today (UTC)")


class StepOverwriteRequestDTO(BaseModel):
    """Request model for setting the steps of a given day."""

    steps: int = Field(..., ge=0, description="Step count for the day")


class StepResetRequestDTO(BaseModel):
    """Request model for zeroing a day's steps."""

    day: Optional[date] = Field(None, description="Calendar day (YYYY-MM-DD); defaults to today (UTC)")


class RegistrationResponseDTO(BaseModel):
    """Response model for registration state."""

    user_id: str
    registered: bool
    created: Optional[bool] = Field(None, description="False when the user was already registered")


class DeletionResponseDTO(BaseModel):
    """Response model for account deletion."""

    user_id: str
    deleted: bool = True


class EntriesResponseDTO(BaseModel):
    """Response model for a user's daily entries."""

    user_id: str
    entries: List[DailyEntry] = Field(default_factory=list)
