"""
Leaderboard ranking over one aggregation window
"""

from typing import Dict, List, Tuple

from src.core.service.steps import windows
from src.core.service.steps.ledger import validate_day
from src.core.service.steps.models import Leaderboard, LeaderboardEntry, Window
from src.infra.repository.base import StepStore
from src.core.exceptions.base import InvalidInputError
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 10


def _sort_key(item: Tuple[str, int]) -> Tuple[int, str]:
    # Most steps first; equal totals fall back to user id ascending
    user_id, steps = item
    return -steps, user_id


def rank_totals(totals: Dict[str, int], limit: int = DEFAULT_LIMIT) -> List[LeaderboardEntry]:
    """Order per-user totals, drop users without steps and keep the top `limit`."""
    ranked = sorted(((u, s) for u, s in totals.items() if s > 0), key=_sort_key)
    return [
        LeaderboardEntry(position=position, user_id=user_id, steps=steps)
        for position, (user_id, steps) in enumerate(ranked[:limit])
    ]


class LeaderboardRanker:
    """Collects every user's total for a window and ranks them."""

    def __init__(self, store: StepStore, limit: int = DEFAULT_LIMIT):
        self.store = store
        self.limit = limit

    async def rank(self, window: Window, as_of: windows.DayLike) -> Leaderboard:
        """
        Rank users by steps within the window instance containing as_of.

        Users with zero steps in the window are omitted, not ranked last.

        Raises:
            InvalidInputError: Unknown window or unreadable day
        """
        try:
            window = Window(window)
        except ValueError:
            raise InvalidInputError(
                f"Unsupported window: {window}. Supported: {', '.join(w.value for w in Window)}"
            )
        as_of = validate_day(as_of)
        start, end = windows.window_bounds(window, as_of)

        totals = await self.store.window_totals(start, end)
        entries = rank_totals(totals, self.limit)

        logger.debug(
            "Leaderboard ranked",
            extra={"window": window.value, "start": str(start), "end": str(end), "ranked": len(entries)}
        )
        return Leaderboard(window=window, as_of=as_of, start=start, end=end, entries=entries)
