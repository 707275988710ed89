from dataclasses import dataclass
from enum import Enum
from typing import Optional

from services.time_resolver import SleepCategory, TimeLike, to_time, crosses_midnight

MINUTES_PER_DAY = 24 * 60

NAP_WARN_MINUTES = 4 * 60
NAP_MAX_MINUTES = 5 * 60
NIGHT_WARN_MINUTES = 13 * 60
NIGHT_MAX_MINUTES = 14 * 60

MISSING_END_TIME = "End time is required"
IDENTICAL_START_END = "Start and end times are the same"
NAP_TOO_LONG = "Nap duration exceeds 5 hours"
NAP_UNUSUALLY_LONG = "Unusually long nap"
NAP_CROSSES_MIDNIGHT = "This nap crosses midnight"
NIGHT_TOO_LONG = "Night sleep exceeds 14 hours"
NIGHT_UNUSUALLY_LONG = "Unusually long night sleep"


class Severity(str, Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    severity: Severity
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True, severity=Severity.OK)

    @classmethod
    def warn(cls, message: str) -> "ValidationResult":
        return cls(is_valid=True, severity=Severity.WARN, message=message)

    @classmethod
    def error(cls, message: str) -> "ValidationResult":
        return cls(is_valid=False, severity=Severity.ERROR, message=message)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "severity": self.severity.value,
            "message": self.message,
        }


def _minutes_since_midnight(value: TimeLike) -> int:
    t = to_time(value)
    return t.hour * 60 + t.minute


def duration_minutes(start_time: TimeLike, end_time: TimeLike) -> int:
    """
    Elapsed minutes between two wall-clock times.

    Works on time-of-day only: an end at or before the start is taken to be on
    the next day, so equal times give 1440 rather than 0.
    """
    start = _minutes_since_midnight(start_time)
    end = _minutes_since_midnight(end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return end - start


def classify(
    category: SleepCategory,
    start_time: TimeLike,
    end_time: Optional[TimeLike],
    require_end: bool = False,
) -> ValidationResult:
    """
    Judge whether a session's duration is plausible for its category.

    Errors are checked before warnings and only the first matching rule is
    reported. A session without an end is ongoing and passes unless the
    workflow requires an end time.
    """
    if end_time is None or end_time == "":
        if require_end:
            return ValidationResult.error(MISSING_END_TIME)
        return ValidationResult.ok()

    mins = duration_minutes(start_time, end_time)
    if mins in (0, MINUTES_PER_DAY):
        return ValidationResult.error(IDENTICAL_START_END)

    if category == SleepCategory.NAP:
        if mins > NAP_MAX_MINUTES:
            return ValidationResult.error(NAP_TOO_LONG)
        if mins > NAP_WARN_MINUTES:
            return ValidationResult.warn(NAP_UNUSUALLY_LONG)
        # Night sleep crossing midnight is the normal case and is not flagged.
        if crosses_midnight(start_time, end_time):
            return ValidationResult.warn(NAP_CROSSES_MIDNIGHT)
    else:
        if mins > NIGHT_MAX_MINUTES:
            return ValidationResult.error(NIGHT_TOO_LONG)
        if mins > NIGHT_WARN_MINUTES:
            return ValidationResult.warn(NIGHT_UNUSUALLY_LONG)

    return ValidationResult.ok()
