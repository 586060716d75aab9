"""
Process-memory step store
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional

from src.core.service.steps import windows
from src.core.service.steps.models import DailyEntry
from src.infra.repository.base import StepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class MemoryStepStore(StepStore):
    """
    Step store kept in process memory.

    Week and month buckets are materialized per user and recomputed from the raw
    entries of the bucket every time an entry inside it is written.
    """

    name = "memory"

    def __init__(self):
        self._users: Dict[str, datetime] = {}
        self._entries: Dict[str, Dict[date, int]] = {}
        self._weekly: Dict[str, Dict[date, int]] = defaultdict(dict)
        self._monthly: Dict[str, Dict[str, int]] = defaultdict(dict)

    async def add_user(self, user_id: str, registered_at: datetime) -> bool:
        if user_id in self._users:
            return False
        self._users[user_id] = registered_at
        self._entries[user_id] = {}
        return True

    async def has_user(self, user_id: str) -> bool:
        return user_id in self._users

    async def remove_user(self, user_id: str) -> bool:
        if user_id not in self._users:
            return False
        del self._users[user_id]
        self._entries.pop(user_id, None)
        self._weekly.pop(user_id, None)
        self._monthly.pop(user_id, None)
        return True

    async def list_users(self) -> List[str]:
        return sorted(self._users)

    def registered_at(self, user_id: str) -> Optional[datetime]:
        return self._users.get(user_id)

    async def upsert_entry(self, user_id: str, day: date, steps: int) -> bool:
        if user_id not in self._users:
            return False
        self._entries.setdefault(user_id, {})[day] = steps
        self._refresh_buckets(user_id, day)
        return True

    def _refresh_buckets(self, user_id: str, day: date) -> None:
        entries = self._entries.get(user_id, {})

        week = windows.week_start(day)
        week_last = windows.week_end(day)
        self._weekly[user_id][week] = sum(
            steps for entry_day, steps in entries.items() if week <= entry_day <= week_last
        )

        month = windows.month_key(day)
        self._monthly[user_id][month] = sum(
            steps for entry_day, steps in entries.items() if windows.month_key(entry_day) == month
        )

    async def get_entries(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyEntry]:
        entries = self._entries.get(user_id, {})
        return [
            DailyEntry(user_id=user_id, day=day, steps=steps)
            for day, steps in sorted(entries.items())
            if (start is None or day >= start) and (end is None or day <= end)
        ]

    async def window_totals(self, start: date, end: date) -> Dict[str, int]:
        if start == windows.week_start(start) and end == windows.week_end(start):
            totals = {
                user_id: buckets.get(start, 0) for user_id, buckets in self._weekly.items()
            }
        elif start == windows.month_start(start) and end == windows.month_end(start):
            month = windows.month_key(start)
            totals = {
                user_id: buckets.get(month, 0) for user_id, buckets in self._monthly.items()
            }
        else:
            totals = {}
            for user_id, entries in self._entries.items():
                in_range = [steps for day, steps in entries.items() if start <= day <= end]
                if in_range:
                    totals[user_id] = sum(in_range)

        return {
            user_id: total
            for user_id, total in totals.items()
            if user_id in self._users and self._has_entry_between(user_id, start, end)
        }

    def _has_entry_between(self, user_id: str, start: date, end: date) -> bool:
        return any(start <= day <= end for day in self._entries.get(user_id, {}))
