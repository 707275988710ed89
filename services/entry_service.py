import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from extensions import db  # type: ignore
from models.sleep_entry_model import SleepEntry
from services.errors import EntryNotFoundError, InvalidWakeTimeError, StorageError
from services.time_resolver import ResolvedSession, parse_time_of_day

logger = logging.getLogger(__name__)


def _storage_failure(action: str) -> StorageError:
    db.session.rollback()
    logger.exception("Failed to %s sleep entry", action)
    return StorageError(f"Could not {action} the sleep entry. Please try again.")


def get_entry_or_raise(entry_id: int) -> SleepEntry:
    entry = SleepEntry.get_entry(entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id)
    return entry


def get_entries_for_date(day: date) -> List[SleepEntry]:
    """Entries whose start falls on ``day``, earliest first."""
    return SleepEntry.get_entries_for_date(day)


def get_active_entry() -> Optional[SleepEntry]:
    return SleepEntry.get_active_entry()


def get_last_completed_entry() -> Optional[SleepEntry]:
    return SleepEntry.get_last_completed_entry()


def create_entry(session: ResolvedSession, notes: Optional[str] = None) -> SleepEntry:
    try:
        entry = SleepEntry.create_entry(session, notes=notes)
    except SQLAlchemyError as exc:
        raise _storage_failure("save") from exc
    logger.info("Created %s entry %s starting %s", entry.type, entry.id, entry.start_time)
    return entry


def update_entry(entry_id: int, session: ResolvedSession, notes: Optional[str] = None) -> SleepEntry:
    entry = get_entry_or_raise(entry_id)
    try:
        entry.apply(session, notes=notes)
    except SQLAlchemyError as exc:
        raise _storage_failure("update") from exc
    logger.info("Updated %s entry %s", entry.type, entry.id)
    return entry


def update_notes(entry_id: int, notes: Optional[str]) -> SleepEntry:
    """Change only the notes; stored start and end are left as they are."""
    entry = get_entry_or_raise(entry_id)
    try:
        entry.set_notes(notes)
    except SQLAlchemyError as exc:
        raise _storage_failure("update") from exc
    logger.info("Updated notes on %s entry %s", entry.type, entry.id)
    return entry


def delete_entry(entry_id: int) -> None:
    entry = get_entry_or_raise(entry_id)
    try:
        entry.delete()
    except SQLAlchemyError as exc:
        raise _storage_failure("delete") from exc
    logger.info("Deleted sleep entry %s", entry_id)


def resolve_wake_time(bedtime: datetime, wake_time: str, now: datetime) -> datetime:
    """
    Turn a wake-up time-of-day into an instant on the clock's calendar day.

    The wake-up may not lie in the future and must come after the bedtime.
    """
    t = parse_time_of_day(wake_time)
    if t is None:
        raise InvalidWakeTimeError("Please provide a valid time in HH:MM format.")
    wake_at = datetime.combine(now.date(), t)
    if wake_at > now:
        raise InvalidWakeTimeError("Wake-up time cannot be in the future")
    if wake_at <= bedtime:
        raise InvalidWakeTimeError("Wake-up time must be after bedtime")
    return wake_at


def end_sleep(entry_id: int, wake_time: str, now: datetime) -> SleepEntry:
    """Close the ongoing entry ``entry_id`` at ``wake_time``."""
    entry = get_entry_or_raise(entry_id)
    if not entry.is_ongoing:
        raise InvalidWakeTimeError("This sleep entry has already ended")

    wake_at = resolve_wake_time(entry.start_time, wake_time, now)
    session = ResolvedSession(category=entry.category, start=entry.start_time, end=wake_at)
    try:
        entry.apply(session)
    except SQLAlchemyError as exc:
        raise _storage_failure("update") from exc
    logger.info("Ended %s entry %s at %s", entry.type, entry.id, wake_at)
    return entry
