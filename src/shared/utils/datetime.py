"""Timezone helpers. All timestamps leaving the persistence layer are UTC-aware."""

from datetime import datetime, timezone


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    SQLite returns naive values for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
