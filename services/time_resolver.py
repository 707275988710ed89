from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

TIME_FORMAT = "%H:%M"
DATE_FORMAT = "%Y-%m-%d"

# Bedtimes from 00:00 up to and including this hour belong to the previous
# evening's night sleep.
POST_MIDNIGHT_BEDTIME_LAST_HOUR = 3


class SleepCategory(str, Enum):
    NAP = "nap"
    NIGHT = "night"


TimeLike = Union[str, time]


@dataclass(frozen=True)
class ResolvedSession:
    """Absolute instants handed to storage at save time."""

    category: SleepCategory
    start: datetime
    end: Optional[datetime] = None

    @property
    def is_ongoing(self) -> bool:
        return self.end is None


def parse_time_of_day(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    try:
        return datetime.strptime(value, TIME_FORMAT).time()
    except (TypeError, ValueError):
        return None


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


def to_time(value: TimeLike) -> time:
    if isinstance(value, time):
        return value
    parsed = parse_time_of_day(value)
    if parsed is None:
        raise ValueError(f"Invalid time of day: {value!r}")
    return parsed


def is_post_midnight_bedtime(start_time: TimeLike) -> bool:
    """True when a night sleep starting at ``start_time`` began after midnight."""
    return to_time(start_time).hour <= POST_MIDNIGHT_BEDTIME_LAST_HOUR


def crosses_midnight(start_time: TimeLike, end_time: TimeLike) -> bool:
    return to_time(end_time) < to_time(start_time)


def bedtime_date(category: SleepCategory, selected_date: date, start_time: TimeLike) -> date:
    """Calendar day the session's start belongs to."""
    if category == SleepCategory.NIGHT and is_post_midnight_bedtime(start_time):
        return selected_date - timedelta(days=1)
    return selected_date


def selected_date_for(category: SleepCategory, start: datetime) -> date:
    """Selected date that resolves back to ``start``; inverse of ``bedtime_date``."""
    if category == SleepCategory.NIGHT and is_post_midnight_bedtime(start.time()):
        return start.date() + timedelta(days=1)
    return start.date()


def resolve_start(category: SleepCategory, selected_date: date, start_time: TimeLike) -> datetime:
    anchor = bedtime_date(category, selected_date, start_time)
    return datetime.combine(anchor, to_time(start_time))


def resolve_end(
    category: SleepCategory,
    selected_date: date,
    start_time: TimeLike,
    end_time: Optional[TimeLike],
) -> Optional[datetime]:
    """
    Resolve the end time-of-day to an absolute instant.

    An end earlier than the start rolls forward to the day after the start's
    anchor. A night that began after midnight otherwise ends on the selected
    date itself, not on the shifted bedtime date.
    """
    if end_time is None or end_time == "":
        return None

    end_t = to_time(end_time)
    anchor = bedtime_date(category, selected_date, start_time)

    if crosses_midnight(start_time, end_t):
        return datetime.combine(anchor + timedelta(days=1), end_t)
    if category == SleepCategory.NIGHT and is_post_midnight_bedtime(start_time):
        return datetime.combine(selected_date, end_t)
    return datetime.combine(anchor, end_t)


def resolve_session(
    category: SleepCategory,
    selected_date: date,
    start_time: TimeLike,
    end_time: Optional[TimeLike] = None,
) -> ResolvedSession:
    return ResolvedSession(
        category=category,
        start=resolve_start(category, selected_date, start_time),
        end=resolve_end(category, selected_date, start_time, end_time),
    )


def time_of_day(instant: datetime) -> str:
    """HH:MM wall-clock part of a resolved instant."""
    return instant.strftime(TIME_FORMAT)
