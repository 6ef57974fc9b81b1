"""Time source shared by the store and the services.

Timestamps are naive UTC everywhere: SQLite drops tzinfo on write, and
comparing aware with naive datetimes raises.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_aware(value):
    """Attach UTC to a stored naive timestamp for serialization (None passes through)."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)
