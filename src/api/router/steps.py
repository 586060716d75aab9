"""Users, step reports and stats router."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.models.request_models import (
    StepReportRequestDTO,
    StepOverwriteRequestDTO,
    StepResetRequestDTO,
    RegistrationResponseDTO,
    DeletionResponseDTO,
    EntriesResponseDTO
)
from src.core.dependencies import get_steps_engine
from src.core.service.steps import windows
from src.core.service.steps.engine import StepsEngine
from src.core.service.steps.models import DailyEntry, StepStats
from src.core.logger.logger import logger

router = APIRouter(
    prefix="/users",
    tags=["steps"],
    responses={
        404: {"description": "User is not registered"},
        422: {"description": "Invalid input"},
        503: {"description": "Storage unavailable"}
    }
)


@router.post(
    "/{user_id}",
    response_model=RegistrationResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user"
)
async def register_user(
    user_id: str,
    engine: StepsEngine = Depends(get_steps_engine)
) -> RegistrationResponseDTO:
    """
    Join the challenge. Registering twice is not an error.
    """
    created = await engine.register(user_id)
    return RegistrationResponseDTO(user_id=user_id, registered=True, created=created)


@router.get("/{user_id}", response_model=RegistrationResponseDTO, summary="Check registration")
async def get_registration(
    user_id: str,
    engine: StepsEngine = Depends(get_steps_engine)
) -> RegistrationResponseDTO:
    return RegistrationResponseDTO(user_id=user_id, registered=await engine.is_registered(user_id))


@router.delete("/{user_id}", response_model=DeletionResponseDTO, summary="Delete a user and all entries")
async def delete_user(
    user_id: str,
    engine: StepsEngine = Depends(get_steps_engine)
) -> DeletionResponseDTO:
    await engine.delete_user(user_id)
    logger.info("User removed through API", extra={"user_id": user_id})
    return DeletionResponseDTO(user_id=user_id)


@router.post("/{user_id}/steps", response_model=DailyEntry, summary="Report steps")
async def report_steps(
    user_id: str,
    request: StepReportRequestDTO,
    engine: StepsEngine = Depends(get_steps_engine)
) -> DailyEntry:
    """
    Record the steps of one day (today when no day is given).

    A later report for the same day replaces the earlier one.
    """
    day = request.day or windows.today()
    return await engine.report(user_id, day, request.steps)


@router.put("/{user_id}/steps/{day}", response_model=DailyEntry, summary="Set steps of a day")
async def overwrite_steps(
    user_id: str,
    day: date,
    request: StepOverwriteRequestDTO,
    engine: StepsEngine = Depends(get_steps_engine)
) -> DailyEntry:
    return await engine.report(user_id, day, request.steps)


@router.post("/{user_id}/steps/reset", response_model=DailyEntry, summary="Reset a day's steps to 0")
async def reset_steps(
    user_id: str,
    request: Optional[StepResetRequestDTO] = None,
    engine: StepsEngine = Depends(get_steps_engine)
) -> DailyEntry:
    day = (request.day if request else None) or windows.today()
    return await engine.reset(user_id, day)


@router.get("/{user_id}/steps", response_model=EntriesResponseDTO, summary="List daily entries")
async def list_entries(
    user_id: str,
    engine: StepsEngine = Depends(get_steps_engine)
) -> EntriesResponseDTO:
    return EntriesResponseDTO(user_id=user_id, entries=await engine.entries_for(user_id))


@router.get("/{user_id}/stats", response_model=StepStats, summary="Get step statistics")
async def get_stats(
    user_id: str,
    as_of: Optional[date] = Query(None, description="Day to compute the windows for; defaults to today (UTC)"),
    engine: StepsEngine = Depends(get_steps_engine)
) -> StepStats:
    """
    Today, this week, this month and all-time totals, with the average per active day.
    """
    return await engine.stats_for(user_id, as_of or windows.today())
