from datetime import date, datetime, timedelta
from typing import List, Optional

from extensions import db  # type: ignore
from models import TimestampMixin
from services.time_resolver import ResolvedSession, SleepCategory, selected_date_for, time_of_day


class SleepEntry(TimestampMixin, db.Model):
    __tablename__ = "sleep_entries"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    # NULL while the baby is still asleep.
    end_time = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    @property
    def category(self) -> SleepCategory:
        return SleepCategory(self.type)

    @property
    def entry_date(self) -> date:
        return self.start_time.date()

    @property
    def selected_date(self) -> date:
        """Day the entry is logged under; a night begun after midnight belongs to the next day."""
        return selected_date_for(self.category, self.start_time)

    @property
    def is_ongoing(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "date": self.entry_date.isoformat(),
            "selected_date": self.selected_date.isoformat(),
            "start_time": self.start_time.isoformat(timespec="minutes"),
            "end_time": self.end_time.isoformat(timespec="minutes") if self.end_time else None,
            "start": time_of_day(self.start_time),
            "end": time_of_day(self.end_time) if self.end_time else None,
            "notes": self.notes,
        }

    @staticmethod
    def get_entry(entry_id: int) -> Optional["SleepEntry"]:
        return db.session.get(SleepEntry, entry_id)

    @staticmethod
    def get_entries_for_date(day: date) -> List["SleepEntry"]:
        start = datetime(day.year, day.month, day.day)
        end = start + timedelta(days=1)
        return (
            SleepEntry.query.filter(
                SleepEntry.start_time >= start,
                SleepEntry.start_time < end,
            )
            .order_by(SleepEntry.start_time.asc())
            .all()
        )

    @staticmethod
    def get_active_entry() -> Optional["SleepEntry"]:
        return (
            SleepEntry.query.filter(SleepEntry.end_time.is_(None))
            .order_by(SleepEntry.start_time.desc())
            .first()
        )

    @staticmethod
    def get_last_completed_entry() -> Optional["SleepEntry"]:
        return (
            SleepEntry.query.filter(SleepEntry.end_time.isnot(None))
            .order_by(SleepEntry.end_time.desc())
            .first()
        )

    @staticmethod
    def create_entry(session: ResolvedSession, notes: Optional[str] = None) -> "SleepEntry":
        entry = SleepEntry(
            type=session.category.value,
            start_time=session.start,
            end_time=session.end,
            notes=notes or None,
        )
        db.session.add(entry)
        db.session.commit()
        return entry

    def set_notes(self, notes: Optional[str]) -> "SleepEntry":
        self.notes = notes or None
        db.session.commit()
        return self

    def apply(self, session: ResolvedSession, notes: Optional[str] = None) -> "SleepEntry":
        self.type = session.category.value
        self.start_time = session.start
        self.end_time = session.end
        if notes is not None:
            self.notes = notes or None
        db.session.commit()
        return self

    def delete(self) -> None:
        db.session.delete(self)
        db.session.commit()
