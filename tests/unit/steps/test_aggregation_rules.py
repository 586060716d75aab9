from datetime import date

import pytest

from src.core.service.steps.aggregator import average_per_day, summarize
from src.core.service.steps.leaderboard import rank_totals
from src.core.service.steps.models import DailyEntry


def entry(day: date, steps: int, user_id: str = "alice") -> DailyEntry:
    return DailyEntry(user_id=user_id, day=day, steps=steps)


class TestAveragePerDay:

    @pytest.mark.parametrize("total,days,expected", [
        (3000, 2, 1500),
        (5, 2, 3),       # 2.5 rounds up
        (7, 2, 4),       # 3.5 rounds up
        (10, 3, 3),      # 3.33 rounds down
        (0, 4, 0),
        (1234, 0, 0),
    ])
    def test_rounds_half_up(self, total, days, expected):
        assert average_per_day(total, days) == expected


class TestSummarize:

    def test_example_monday_and_tuesday_seen_on_wednesday(self):
        stats = summarize("alice", [entry(date(2024, 3, 25), 1000), entry(date(2024, 3, 26), 2000)], date(2024, 3, 27))

        assert stats.this_week == 3000
        assert stats.total == 3000
        assert stats.active_day_count == 2
        assert stats.average_per_active_day == 1500
        assert stats.today == 0

    def test_explicit_zero_counts_as_active_day(self):
        stats = summarize("alice", [entry(date(2024, 3, 25), 0), entry(date(2024, 3, 26), 1001)], date(2024, 3, 26))

        assert stats.active_day_count == 2
        assert stats.average_per_active_day == 501
        assert stats.today == 1001

    def test_week_spanning_months_splits_month_but_not_week(self):
        entries = [entry(date(2024, 4, 30), 400), entry(date(2024, 5, 2), 500)]

        stats = summarize("alice", entries, date(2024, 5, 2))

        assert stats.this_week == 900
        assert stats.this_month == 500
        assert stats.total == 900

    def test_entries_after_as_of_are_outside_past_windows(self):
        entries = [entry(date(2024, 3, 25), 100), entry(date(2024, 4, 8), 700)]

        stats = summarize("alice", entries, date(2024, 3, 27))

        assert stats.this_week == 100
        assert stats.this_month == 100
        assert stats.total == 800

    def test_no_entries(self):
        stats = summarize("alice", [], date(2024, 3, 27))

        assert stats.model_dump(exclude={"user_id", "as_of"}) == {
            "today": 0,
            "this_week": 0,
            "this_month": 0,
            "total": 0,
            "average_per_active_day": 0,
            "active_day_count": 0,
        }


class TestRankTotals:

    def test_orders_by_steps_descending(self):
        ranked = rank_totals({"a": 10, "b": 30, "c": 20})

        assert [(e.position, e.user_id, e.steps) for e in ranked] == [(0, "b", 30), (1, "c", 20), (2, "a", 10)]

    def test_ties_break_on_user_id_ascending(self):
        ranked = rank_totals({"zed": 50, "amy": 50, "bob": 50, "top": 60})

        assert [e.user_id for e in ranked] == ["top", "amy", "bob", "zed"]

    def test_zero_step_users_are_omitted(self):
        ranked = rank_totals({"a": 0, "b": 5})

        assert [e.user_id for e in ranked] == ["b"]

    def test_limits_to_top_ten(self):
        totals = {f"user-{i:02d}": 100 + i for i in range(15)}

        ranked = rank_totals(totals)

        assert len(ranked) == 10
        assert ranked[0].user_id == "user-14"
        assert ranked[-1].position == 9

    def test_empty(self):
        assert rank_totals({}) == []
