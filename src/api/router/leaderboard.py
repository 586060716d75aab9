"""Leaderboard router."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.core.dependencies import get_steps_engine
from src.core.service.steps import windows
from src.core.service.steps.engine import StepsEngine
from src.core.service.steps.models import Leaderboard, Window

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get(
    "/{window}",
    response_model=Leaderboard,
    summary="Get a leaderboard",
    description="Top users by steps for the day, ISO week or calendar month containing as_of"
)
async def get_leaderboard(
    window: Window,
    as_of: Optional[date] = Query(None, description="Defaults to today (UTC)"),
    engine: StepsEngine = Depends(get_steps_engine)
) -> Leaderboard:
    """
    Users without steps in the window are left out. Positions are 0-based and
    equal totals are ordered by user id.
    """
    return await engine.rank(window, as_of or windows.today())
