"""
Steps engine: the single entry point transports use to reach the ledger,
registry, aggregator and ranker.
"""

from typing import Awaitable, List, Optional, Protocol, TypeVar

from src.core.exceptions.base import StorageUnavailableError
from src.core.service.steps import windows
from src.core.service.steps.aggregator import StepAggregator
from src.core.service.steps.leaderboard import DEFAULT_LIMIT, LeaderboardRanker
from src.core.service.steps.ledger import StepLedger
from src.core.service.steps.models import DailyEntry, Leaderboard, StepStats, Window
from src.core.service.steps.registry import UserId, UserRegistry
from src.infra.repository.base import StepStore

T = TypeVar("T")


class OperationRecorder(Protocol):
    """Where the engine reports the outcome of each operation"""

    def record_operation(self, operation: str, success: bool, window: Optional[str] = None) -> None:
        ...


class StepsEngine:
    """
    Long-lived engine owning one step store.

    All components read and write through the same store, and none of them
    branches on which backend it is. Operation outcomes go to `metrics` when
    one is given.
    """

    def __init__(
        self,
        store: StepStore,
        leaderboard_limit: int = DEFAULT_LIMIT,
        metrics: Optional[OperationRecorder] = None
    ):
        self.store = store
        self.metrics = metrics
        self.registry = UserRegistry(store)
        self.ledger = StepLedger(store, self.registry)
        self.aggregator = StepAggregator(store, self.registry)
        self.ranker = LeaderboardRanker(store, limit=leaderboard_limit)

    async def connect(self) -> None:
        await self.store.connect()

    async def close(self) -> None:
        await self.store.close()

    async def _tracked(self, operation: str, call: Awaitable[T], window: Optional[str] = None) -> T:
        if self.metrics is None:
            return await call
        try:
            result = await call
        except StorageUnavailableError:
            self.metrics.record_operation(operation, success=False)
            raise
        self.metrics.record_operation(operation, success=True, window=window)
        return result

    async def register(self, user_id: UserId) -> bool:
        return await self._tracked("register", self.registry.register(user_id))

    async def is_registered(self, user_id: UserId) -> bool:
        return await self.registry.is_registered(user_id)

    async def delete_user(self, user_id: UserId) -> None:
        await self._tracked("delete_user", self.registry.delete_user(user_id))

    async def report(self, user_id: UserId, day: windows.DayLike, steps: int) -> DailyEntry:
        return await self._tracked("report", self.ledger.report(user_id, day, steps))

    async def reset(self, user_id: UserId, day: windows.DayLike) -> DailyEntry:
        return await self._tracked("reset", self.ledger.reset(user_id, day))

    async def entries_for(self, user_id: UserId) -> List[DailyEntry]:
        return await self.ledger.entries_for(user_id)

    async def stats_for(self, user_id: UserId, now: Optional[windows.DayLike] = None) -> StepStats:
        as_of = windows.today() if now is None else now
        return await self._tracked("stats", self.aggregator.stats_for(user_id, as_of))

    async def rank(self, window: Window, now: Optional[windows.DayLike] = None) -> Leaderboard:
        as_of = windows.today() if now is None else now
        window_name = window.value if isinstance(window, Window) else str(window)
        return await self._tracked("leaderboard", self.ranker.rank(window, as_of), window=window_name)
