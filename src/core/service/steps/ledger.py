"""
Step ledger: upsert semantics for one user's one-day entry
"""

from datetime import date
from typing import Any, List

from src.core.exceptions.base import InvalidInputError, UnknownUserError
from src.core.service.steps import windows
from src.core.service.steps.models import DailyEntry
from src.core.service.steps.registry import UserId, UserRegistry, normalize_user_id
from src.infra.repository.base import StepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

# Largest value a signed 64-bit column (SQLite INTEGER, PostgreSQL BIGINT) holds
MAX_STEPS = 2 ** 63 - 1


def validate_steps(steps: Any) -> int:
    """
    Raises:
        InvalidInputError: If steps is not an integer in [0, MAX_STEPS]
    """
    if isinstance(steps, bool) or not isinstance(steps, int):
        raise InvalidInputError("Step count must be an integer", details={"steps": repr(steps)})
    if steps < 0:
        raise InvalidInputError("Step count cannot be negative", details={"steps": steps})
    if steps > MAX_STEPS:
        raise InvalidInputError("Step count is too large", details={"steps": str(steps), "max": MAX_STEPS})
    return steps


def validate_day(day: windows.DayLike) -> date:
    try:
        return windows.to_day(day)
    except ValueError as e:
        raise InvalidInputError(str(e), details={"day": repr(day)})


class StepLedger:
    """
    Owns the daily entries. A second report for the same day replaces the first
    one; it never adds to it.
    """

    def __init__(self, store: StepStore, registry: UserRegistry):
        self.store = store
        self.registry = registry

    async def report(self, user_id: UserId, day: windows.DayLike, steps: int) -> DailyEntry:
        """
        Record the step count of one user for one day.

        Args:
            user_id: Registered user id
            day: Calendar day of the entry
            steps: Non-negative step count, replacing any previous value for that day

        Returns:
            The entry as stored

        Raises:
            InvalidInputError: Negative, oversized or non-integer steps, unreadable day
            UnknownUserError: User is not registered
            StorageUnavailableError: The store failed; nothing was written
        """
        steps = validate_steps(steps)
        day = validate_day(day)
        user_id = await self.registry.require(user_id)

        # Registration is checked again inside the write itself
        if not await self.store.upsert_entry(user_id, day, steps):
            raise UnknownUserError(user_id)

        logger.info(
            "Steps recorded",
            extra={"user_id": user_id, "day": windows.day_key(day), "steps": steps}
        )
        return DailyEntry(user_id=user_id, day=day, steps=steps)

    async def reset(self, user_id: UserId, day: windows.DayLike) -> DailyEntry:
        """Zero one day's entry; the entry is kept and other days are untouched."""
        return await self.report(user_id, day, 0)

    async def entries_for(self, user_id: UserId) -> List[DailyEntry]:
        """All entries of a user by day ascending; empty if the user never reported."""
        return await self.store.get_entries(normalize_user_id(user_id))
