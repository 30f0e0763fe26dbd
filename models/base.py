"""
Base classes and mixins for SQLAlchemy models.
"""

from datetime import datetime, timezone
from . import db


def utcnow():
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column(enum_cls, name, default=None, nullable=False):
    """Enum column persisted by value (e.g. 'active') rather than member name."""
    return db.Column(
        db.Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name),
        default=default,
        nullable=nullable
    )


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)


def isoformat(value):
    """Serialize a date/time/datetime (or None) for JSON responses."""
    return value.isoformat() if value is not None else None
