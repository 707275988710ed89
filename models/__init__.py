from datetime import datetime

from extensions import db  # type: ignore


class TimestampMixin:
    """Mixin that adds created_at and updated_at columns."""

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


def init_models():
    """Import models so that SQLAlchemy is aware of them."""
    # Local imports to avoid circular dependencies
    from .sleep_entry_model import SleepEntry  # noqa: F401
