"""
Storage capability interface shared by every step store backend
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Optional

from src.core.service.steps.models import DailyEntry


class StepStore(ABC):
    """
    Read/write contract the steps engine needs from persistence.

    Implementations raise StorageUnavailableError when the backend fails and must
    leave no visible change behind a failed write.
    """

    name: str = "abstract"

    async def connect(self) -> None:
        """Prepare the backend (open pools, create tables)."""

    async def close(self) -> None:
        """Release backend resources."""

    async def ping(self) -> None:
        """Round-trip the backend; raises StorageUnavailableError when it is down."""
        await self.has_user("__healthcheck__")

    @abstractmethod
    async def add_user(self, user_id: str, registered_at: datetime) -> bool:
        """Register a user; returns False if the user already existed."""

    @abstractmethod
    async def has_user(self, user_id: str) -> bool:
        ...

    @abstractmethod
    async def remove_user(self, user_id: str) -> bool:
        """Remove a user together with all its entries, atomically."""

    @abstractmethod
    async def list_users(self) -> List[str]:
        ...

    @abstractmethod
    async def upsert_entry(self, user_id: str, day: date, steps: int) -> bool:
        """
        Insert the (user_id, day) entry or overwrite its steps.

        The registration check and the write are one atomic step: returns False,
        writing nothing, when the user is not registered at the time of the write.
        """

    @abstractmethod
    async def get_entries(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyEntry]:
        """Entries of one user within [start, end], ordered by day ascending."""

    @abstractmethod
    async def window_totals(self, start: date, end: date) -> Dict[str, int]:
        """Per-user step sums over [start, end]; users without entries in range are absent."""
