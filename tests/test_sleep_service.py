import pytest

from services.sleep_service import (
    IDENTICAL_START_END,
    MISSING_END_TIME,
    NAP_CROSSES_MIDNIGHT,
    NAP_TOO_LONG,
    NAP_UNUSUALLY_LONG,
    NIGHT_TOO_LONG,
    NIGHT_UNUSUALLY_LONG,
    Severity,
    ValidationResult,
    classify,
    duration_minutes,
)
from services.time_resolver import SleepCategory

NAP = SleepCategory.NAP
NIGHT = SleepCategory.NIGHT


# ============================================================
# TESTS — DURATION
# ============================================================

@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("13:00", "13:29", 29),
        ("09:15", "10:45", 90),
        ("00:00", "23:59", 1439),
        ("13:00", "19:30", 390),
    ],
)
def test_same_day_duration_is_plain_difference(start, end, expected):
    assert duration_minutes(start, end) == expected


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("23:00", "00:30", 90),
        ("19:30", "06:45", 675),
        ("00:01", "00:00", 1439),
        ("12:00", "11:59", 1439),
        ("23:59", "00:00", 1),
    ],
)
def test_midnight_crossing_duration_wraps(start, end, expected):
    assert duration_minutes(start, end) == expected
    assert 1 <= expected <= 1439


def test_identical_times_give_full_day():
    assert duration_minutes("08:00", "08:00") == 1440


# ============================================================
# TESTS — CLASSIFICATION
# ============================================================

def test_validation_result_factories_keep_severity_consistent():
    assert ValidationResult.error("x").is_valid is False
    assert ValidationResult.warn("x").is_valid is True
    assert ValidationResult.ok().message is None


@pytest.mark.parametrize("category", [NAP, NIGHT])
def test_identical_start_and_end_is_an_error(category):
    result = classify(category, "08:00", "08:00")

    assert result.severity == Severity.ERROR
    assert result.message == IDENTICAL_START_END
    assert not result.is_valid


def test_nap_over_five_hours_is_blocked():
    result = classify(NAP, "13:00", "19:30")

    assert result == ValidationResult.error(NAP_TOO_LONG)


def test_nap_at_exactly_five_hours_only_warns():
    result = classify(NAP, "10:00", "15:00")

    assert result == ValidationResult.warn(NAP_UNUSUALLY_LONG)


def test_nap_at_exactly_four_hours_is_ok():
    assert classify(NAP, "10:00", "14:00") == ValidationResult.ok()


def test_nap_crossing_midnight_warns():
    result = classify(NAP, "23:00", "00:30")

    assert result.is_valid
    assert result.severity == Severity.WARN
    assert result.message == NAP_CROSSES_MIDNIGHT


def test_long_nap_warning_wins_over_midnight_warning():
    result = classify(NAP, "22:00", "02:30")

    assert result.message == NAP_UNUSUALLY_LONG


def test_night_crossing_midnight_is_not_flagged():
    assert classify(NIGHT, "19:30", "06:45") == ValidationResult.ok()


def test_night_thresholds():
    assert classify(NIGHT, "18:00", "07:00") == ValidationResult.ok()
    assert classify(NIGHT, "18:00", "07:01") == ValidationResult.warn(NIGHT_UNUSUALLY_LONG)
    assert classify(NIGHT, "18:00", "08:00") == ValidationResult.warn(NIGHT_UNUSUALLY_LONG)
    assert classify(NIGHT, "18:00", "08:01") == ValidationResult.error(NIGHT_TOO_LONG)


def test_post_midnight_night_example_is_ok():
    assert duration_minutes("01:30", "07:00") == 330
    assert classify(NIGHT, "01:30", "07:00") == ValidationResult.ok()


def test_ongoing_session_passes_unless_end_required():
    assert classify(NIGHT, "20:00", None) == ValidationResult.ok()
    assert classify(NIGHT, "20:00", None, require_end=True) == ValidationResult.error(MISSING_END_TIME)
    assert classify(NIGHT, "20:00", "", require_end=True).severity == Severity.ERROR


@pytest.mark.parametrize("category", [NAP, NIGHT])
@pytest.mark.parametrize("end", ["00:30", "05:00", "08:00", "12:00", "19:59", "23:59"])
def test_error_never_carries_a_valid_flag(category, end):
    result = classify(category, "20:00", end)

    if result.severity == Severity.ERROR:
        assert not result.is_valid
    else:
        assert result.is_valid
