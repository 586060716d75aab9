"""
Per-user aggregates over the day, week and month windows
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from src.core.service.steps import windows
from src.core.service.steps.ledger import validate_day
from src.core.service.steps.models import DailyEntry, StepStats, Window
from src.core.service.steps.registry import UserId, UserRegistry
from src.infra.repository.base import StepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


def average_per_day(total: int, active_days: int) -> int:
    """Rounded half up, so 2.5 becomes 3."""
    if active_days <= 0:
        return 0
    return int((Decimal(total) / Decimal(active_days)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def summarize(user_id: str, entries: Iterable[DailyEntry], as_of: windows.DayLike) -> StepStats:
    """Build the aggregate view of a full entry set as of one day."""
    as_of = windows.to_day(as_of)
    week_first, week_last = windows.window_bounds(Window.WEEKLY, as_of)
    current_month = windows.month_key(as_of)

    today = this_week = this_month = total = active_days = 0
    for entry in entries:
        total += entry.steps
        # An explicit zero still counts as an active day
        active_days += 1
        if entry.day == as_of:
            today = entry.steps
        if week_first <= entry.day <= week_last:
            this_week += entry.steps
        if windows.month_key(entry.day) == current_month:
            this_month += entry.steps

    return StepStats(
        user_id=user_id,
        as_of=as_of,
        today=today,
        this_week=this_week,
        this_month=this_month,
        total=total,
        average_per_active_day=average_per_day(total, active_days),
        active_day_count=active_days,
    )


class StepAggregator:
    """Recomputes a user's aggregates from the ledger on every request."""

    def __init__(self, store: StepStore, registry: UserRegistry):
        self.store = store
        self.registry = registry

    async def stats_for(self, user_id: UserId, as_of: windows.DayLike) -> StepStats:
        """
        Raises:
            UnknownUserError: User is not registered
        """
        user_id = await self.registry.require(user_id)
        entries = await self.store.get_entries(user_id)
        stats = summarize(user_id, entries, validate_day(as_of))
        logger.debug(
            "Stats computed",
            extra={"user_id": user_id, "as_of": str(stats.as_of), "active_days": stats.active_day_count}
        )
        return stats
