"""Helpers for timezone-aware UTC datetimes.

Values are bound to the store as aware UTC. SQLite keeps no offset, so values
read back are normalized here before they leave a repository.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive values and convert aware ones to UTC."""
    if value is None:
        return None

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
