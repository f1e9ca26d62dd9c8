from datetime import date, datetime, time, timezone
from typing import Optional, Union

from astex.core.errors import ValidationError

DateLike = Union[date, datetime, str, None]


def _parse_iso(value: str) -> Union[date, datetime]:
    value = value.strip()
    if not value:
        raise ValidationError("Invalid date: empty value")
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def coerce_date(value: DateLike) -> Optional[date]:
    """Wire date (``2000-01-31`` or a full ISO timestamp) to a date"""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = _parse_iso(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def coerce_datetime(value: DateLike, default_now: bool = True) -> Optional[datetime]:
    """
    Normalize to a timezone-aware datetime.

    A bare date becomes midnight UTC, a naive datetime is taken as UTC and a
    missing value becomes the current time.
    """
    if value is None or value == "":
        return datetime.now(timezone.utc) if default_now else None
    if isinstance(value, str):
        value = _parse_iso(value)
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
