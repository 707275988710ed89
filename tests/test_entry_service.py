from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from extensions import db  # type: ignore
from models.sleep_entry_model import SleepEntry
from services import entry_service
from services.errors import EntryNotFoundError, InvalidWakeTimeError, StorageError
from services.time_resolver import ResolvedSession, SleepCategory


def nap(start, end=None):
    return ResolvedSession(SleepCategory.NAP, start, end)


def night(start, end=None):
    return ResolvedSession(SleepCategory.NIGHT, start, end)


# ============================================================
# TESTS — CRUD
# ============================================================

def test_create_and_list_entries_for_date(app):
    entry_service.create_entry(nap(datetime(2024, 3, 10, 13, 0), datetime(2024, 3, 10, 14, 0)))
    entry_service.create_entry(nap(datetime(2024, 3, 10, 9, 0), datetime(2024, 3, 10, 9, 45)), notes="car seat")
    entry_service.create_entry(night(datetime(2024, 3, 9, 19, 30), datetime(2024, 3, 10, 6, 30)))

    entries = entry_service.get_entries_for_date(date(2024, 3, 10))

    assert [e.start_time.hour for e in entries] == [9, 13]
    assert entries[0].notes == "car seat"
    assert entry_service.get_entries_for_date(date(2024, 3, 9))[0].type == "night"


def test_update_entry_applies_resolved_session(app):
    entry = entry_service.create_entry(nap(datetime(2024, 3, 10, 13, 0)))

    updated = entry_service.update_entry(
        entry.id, nap(datetime(2024, 3, 10, 13, 5), datetime(2024, 3, 10, 14, 0))
    )

    assert updated.start_time == datetime(2024, 3, 10, 13, 5)
    assert updated.end_time == datetime(2024, 3, 10, 14, 0)


def test_update_notes_leaves_times_alone(app):
    entry = entry_service.create_entry(night(datetime(2024, 3, 9, 1, 30), datetime(2024, 3, 10, 7, 0)))

    updated = entry_service.update_notes(entry.id, "woke once")

    assert updated.notes == "woke once"
    assert updated.start_time == datetime(2024, 3, 9, 1, 30)
    assert updated.end_time == datetime(2024, 3, 10, 7, 0)
    assert updated.selected_date == date(2024, 3, 10)
    assert entry_service.update_notes(entry.id, "").notes is None


def test_delete_entry(app):
    entry = entry_service.create_entry(nap(datetime(2024, 3, 10, 13, 0)))

    entry_service.delete_entry(entry.id)

    assert SleepEntry.get_entry(entry.id) is None


def test_missing_entry_raises(app):
    with pytest.raises(EntryNotFoundError):
        entry_service.delete_entry(999)


def test_active_and_last_completed(app):
    entry_service.create_entry(nap(datetime(2024, 3, 10, 9, 0), datetime(2024, 3, 10, 10, 0)))
    entry_service.create_entry(nap(datetime(2024, 3, 10, 12, 0), datetime(2024, 3, 10, 12, 40)))
    active = entry_service.create_entry(nap(datetime(2024, 3, 10, 14, 30)))

    assert entry_service.get_active_entry().id == active.id
    assert entry_service.get_last_completed_entry().end_time == datetime(2024, 3, 10, 12, 40)


def test_storage_failure_is_rolled_back_and_wrapped(app, monkeypatch):
    def broken_create(session, notes=None):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(SleepEntry, "create_entry", staticmethod(broken_create))

    with pytest.raises(StorageError):
        entry_service.create_entry(nap(datetime(2024, 3, 10, 13, 0)))

    assert SleepEntry.query.count() == 0
    assert db.session.is_active


# ============================================================
# TESTS — WAKE UP
# ============================================================

def test_end_sleep_closes_ongoing_night(app):
    entry = entry_service.create_entry(night(datetime(2024, 3, 9, 19, 30)))

    ended = entry_service.end_sleep(entry.id, "06:45", now=datetime(2024, 3, 10, 7, 0))

    assert ended.end_time == datetime(2024, 3, 10, 6, 45)
    assert entry_service.get_active_entry() is None


def test_wake_time_cannot_be_in_the_future(app):
    entry = entry_service.create_entry(night(datetime(2024, 3, 9, 19, 30)))

    with pytest.raises(InvalidWakeTimeError):
        entry_service.end_sleep(entry.id, "07:30", now=datetime(2024, 3, 10, 7, 0))


def test_wake_time_must_follow_bedtime(app):
    entry = entry_service.create_entry(nap(datetime(2024, 3, 10, 13, 0)))

    with pytest.raises(InvalidWakeTimeError):
        entry_service.end_sleep(entry.id, "12:30", now=datetime(2024, 3, 10, 15, 0))


def test_completed_entry_cannot_be_woken(app):
    entry = entry_service.create_entry(nap(datetime(2024, 3, 10, 13, 0), datetime(2024, 3, 10, 14, 0)))

    with pytest.raises(InvalidWakeTimeError):
        entry_service.end_sleep(entry.id, "14:30", now=datetime(2024, 3, 10, 15, 0))
