"""
Step tracking models
"""

from datetime import date
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class Window(str, Enum):
    """Aggregation windows a leaderboard can be ranked over"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class DailyEntry(BaseModel):
    """One user's step count for one calendar day"""
    user_id: str
    day: date
    steps: int = Field(..., ge=0)


class StepStats(BaseModel):
    """Aggregate view of one user's entries as of a given day"""
    user_id: str
    as_of: date
    today: int = Field(default=0, ge=0)
    this_week: int = Field(default=0, ge=0)
    this_month: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    average_per_active_day: int = Field(default=0, ge=0)
    active_day_count: int = Field(default=0, ge=0)


class LeaderboardEntry(BaseModel):
    """One ranked row; position is 0-based"""
    position: int = Field(..., ge=0)
    user_id: str
    steps: int = Field(..., gt=0)


class Leaderboard(BaseModel):
    """Ranked users for one window instance"""
    window: Window
    as_of: date
    start: date
    end: date
    entries: List[LeaderboardEntry] = Field(default_factory=list)
