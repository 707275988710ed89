from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Union

from services.sleep_service import duration_minutes
from services.time_resolver import TimeLike, to_time

IN_PROGRESS_LABEL = "Sleeping..."
JUST_NOW_LABEL = "just now"
YESTERDAY_LABEL = "Yesterday"
LABEL_SEPARATOR = " · "


@dataclass(frozen=True)
class DisplayLabels:
    duration_label: str
    relative_end_label: str

    @property
    def combined(self) -> str:
        """Duration and recency joined for a single caption line."""
        return LABEL_SEPARATOR.join(p for p in (self.duration_label, self.relative_end_label) if p)

    def to_dict(self) -> dict:
        return {
            "duration_label": self.duration_label,
            "relative_end_label": self.relative_end_label,
            "combined": self.combined,
        }


def _hours_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins} min"


def format_duration(start_time: TimeLike, end_time: TimeLike) -> str:
    """Render the session length, e.g. "29 min", "2h" or "1h 30 min"."""
    return _hours_minutes(duration_minutes(start_time, end_time))


def format_month_day(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}"


def format_relative_end(
    selected_date: date,
    end: Union[datetime, TimeLike, None],
    now: datetime,
    is_ongoing: bool = False,
) -> str:
    """
    Describe when a session ended relative to ``now``.

    ``end`` is either a resolved instant or a bare time-of-day, which is then
    read on ``selected_date``. Ends on the clock's day read as "23 min ago",
    the day before as "Yesterday", anything older as "Feb 10". An end in the
    future of ``now`` gives an empty label.
    """
    if end is None or end == "":
        return IN_PROGRESS_LABEL if is_ongoing else ""

    if isinstance(end, datetime):
        end_at = end
    else:
        end_at = datetime.combine(selected_date, to_time(end))

    elapsed = now - end_at
    if elapsed < timedelta(0):
        return ""

    today = now.date()
    if end_at.date() == today:
        minutes = int(elapsed.total_seconds() // 60)
        if minutes < 1:
            return JUST_NOW_LABEL
        return f"{_hours_minutes(minutes)} ago"
    if end_at.date() == today - timedelta(days=1):
        return YESTERDAY_LABEL
    return format_month_day(end_at.date())


def build_display_labels(
    selected_date: date,
    start_time: TimeLike,
    end: Union[datetime, TimeLike, None],
    now: datetime,
    is_ongoing: bool = False,
) -> DisplayLabels:
    if end is None or end == "":
        duration_label = ""
    else:
        end_time = end.time() if isinstance(end, datetime) else end
        duration_label = f"{format_duration(start_time, end_time)} long"
    return DisplayLabels(
        duration_label=duration_label,
        relative_end_label=format_relative_end(selected_date, end, now, is_ongoing),
    )
