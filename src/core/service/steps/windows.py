"""
Calendar window resolution for step entries.

Every function here works on the UTC calendar. A step entry belongs to exactly one
day, one ISO week (Monday to Sunday) and one calendar month.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Tuple, Union

from src.core.service.steps.models import Window

DayLike = Union[date, datetime, str]

DAY_FORMAT = "%Y-%m-%d"


def today() -> date:
    """Current day on the UTC calendar."""
    return datetime.now(timezone.utc).date()


def to_day(value: DayLike) -> date:
    """
    Normalize a date, datetime or YYYY-MM-DD string to a calendar day.

    Aware datetimes are converted to UTC before the date is taken.

    Raises:
        ValueError: If the value cannot be read as a calendar day
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), DAY_FORMAT).date()
        except ValueError:
            raise ValueError(f"Invalid date format: {value}. Expected YYYY-MM-DD")
    raise ValueError(f"Unsupported day value: {value!r}")


def day_key(value: DayLike) -> str:
    return to_day(value).strftime(DAY_FORMAT)


def week_start(value: DayLike) -> date:
    # Sunday belongs to the week of the preceding Monday
    day = to_day(value)
    return day - timedelta(days=day.weekday())


def week_end(value: DayLike) -> date:
    return week_start(value) + timedelta(days=6)


def month_key(value: DayLike) -> str:
    return to_day(value).strftime("%Y-%m")


def month_start(value: DayLike) -> date:
    return to_day(value).replace(day=1)


def month_end(value: DayLike) -> date:
    day = to_day(value)
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def window_bounds(window: Window, as_of: DayLike) -> Tuple[date, date]:
    """Inclusive (start, end) day range of a window instance containing as_of."""
    day = to_day(as_of)
    window = Window(window)
    if window is Window.DAILY:
        return day, day
    if window is Window.WEEKLY:
        return week_start(day), week_end(day)
    return month_start(day), month_end(day)
