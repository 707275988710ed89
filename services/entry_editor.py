import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Optional, TypeVar

from services.errors import InvalidSessionError, SaveInProgressError, StorageError
from services.label_service import IN_PROGRESS_LABEL, DisplayLabels, build_display_labels
from services.sleep_service import ValidationResult, classify
from services.time_resolver import (
    ResolvedSession,
    SleepCategory,
    resolve_session,
    time_of_day,
)

logger = logging.getLogger(__name__)

DEFAULT_NAP_START = "12:00"
DEFAULT_NIGHT_START = "20:00"

T = TypeVar("T")


@dataclass(frozen=True)
class SessionDraft:
    """In-memory session being edited; replaced whole on every change."""

    category: SleepCategory
    selected_date: date
    start: str
    end: Optional[str] = None

    def with_start(self, start: str) -> "SessionDraft":
        return replace(self, start=start)

    def with_end(self, end: Optional[str]) -> "SessionDraft":
        return replace(self, end=end or None)

    def resolve(self) -> ResolvedSession:
        return resolve_session(self.category, self.selected_date, self.start, self.end)

    def validate(self, require_end: bool = False) -> ValidationResult:
        return classify(self.category, self.start, self.end, require_end=require_end)

    def labels(self, now: datetime, is_ongoing: bool = False) -> DisplayLabels:
        end = self.resolve().end if self.end else None
        return build_display_labels(self.selected_date, self.start, end, now, is_ongoing)


def default_start_time(category: SleepCategory, selected_date: date, now: datetime) -> str:
    if selected_date == now.date():
        return time_of_day(now)
    return DEFAULT_NAP_START if category == SleepCategory.NAP else DEFAULT_NIGHT_START


def new_draft(category: SleepCategory, selected_date: date, now: datetime) -> SessionDraft:
    return SessionDraft(
        category=category,
        selected_date=selected_date,
        start=default_start_time(category, selected_date, now),
    )


def draft_from_entry(entry, selected_date: date) -> SessionDraft:
    """Seed a draft from a persisted entry's wall-clock start and end."""
    return SessionDraft(
        category=SleepCategory(entry.type),
        selected_date=selected_date,
        start=time_of_day(entry.start_time),
        end=time_of_day(entry.end_time) if entry.end_time else None,
    )


class EntryEditor:
    """
    Editing session for a single sleep entry.

    Validation and labels are derived from the current draft and clock on
    every read. Only one save may be in flight; a failed save leaves the
    draft untouched so it can be retried.
    """

    def __init__(
        self,
        draft: SessionDraft,
        now: datetime,
        entry_id: Optional[int] = None,
        was_ongoing: bool = False,
        require_end: bool = False,
    ):
        self.draft = draft
        self.now = now
        self.entry_id = entry_id
        self.was_ongoing = was_ongoing
        self.require_end = require_end
        self.is_saving = False
        self.last_error: Optional[str] = None
        self._initial = draft

    @classmethod
    def open_new(
        cls,
        category: SleepCategory,
        selected_date: date,
        now: datetime,
        require_end: bool = False,
    ) -> "EntryEditor":
        return cls(new_draft(category, selected_date, now), now, require_end=require_end)

    @classmethod
    def open_existing(cls, entry, selected_date: date, now: datetime) -> "EntryEditor":
        return cls(
            draft_from_entry(entry, selected_date),
            now,
            entry_id=entry.id,
            was_ongoing=entry.end_time is None,
        )

    @property
    def is_editing(self) -> bool:
        return self.entry_id is not None

    @property
    def is_active_entry(self) -> bool:
        return self.is_editing and self.was_ongoing

    def set_start(self, start: str) -> None:
        self.draft = self.draft.with_start(start)

    def set_end(self, end: Optional[str]) -> None:
        self.draft = self.draft.with_end(end)

    def tick(self, now: datetime) -> None:
        self.now = now

    @property
    def validation(self) -> ValidationResult:
        return self.draft.validate(require_end=self.require_end)

    @property
    def labels(self) -> DisplayLabels:
        return self.draft.labels(self.now, is_ongoing=self.is_active_entry)

    @property
    def caption(self) -> str:
        if self.draft.end:
            return self.labels.combined
        if self.is_active_entry:
            return IN_PROGRESS_LABEL
        return ""

    @property
    def has_changes(self) -> bool:
        if not self.is_editing:
            return bool(self.draft.start)
        return (self.draft.start, self.draft.end) != (self._initial.start, self._initial.end)

    @property
    def can_save(self) -> bool:
        if self.is_saving or not self.validation.is_valid:
            return False
        return self.has_changes or self.is_active_entry

    def draft_to_save(self, stop: Optional[bool] = None) -> SessionDraft:
        """
        The draft as it will be stored.

        Saving an ongoing entry with no end typed stops it at the clock time;
        pass ``stop=False`` to keep it running.
        """
        if stop is None:
            stop = self.is_active_entry
        if stop and self.is_active_entry and not self.draft.end:
            return self.draft.with_end(time_of_day(self.now))
        return self.draft

    def save(self, persist: Callable[[ResolvedSession], T], stop: Optional[bool] = None) -> Optional[T]:
        if self.is_saving:
            raise SaveInProgressError("A save is already in progress for this entry")

        draft = self.draft_to_save(stop=stop)
        result = draft.validate(require_end=self.require_end)
        if not result.is_valid:
            logger.warning("Rejected sleep entry save: %s", result.message)
            raise InvalidSessionError(result)

        session = draft.resolve()
        self.is_saving = True
        self.last_error = None
        try:
            return persist(session)
        except StorageError as exc:
            self.last_error = str(exc)
            return None
        finally:
            self.is_saving = False
