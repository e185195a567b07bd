from __future__ import annotations

from datetime import date, datetime

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a bare date means end of that day."""
    text = str(value or "").strip()
    if not text:
        raise ValidationError("Missing timestamp")
    try:
        if len(text) == 10:
            return datetime.combine(parse_iso_date(text), datetime.max.time())
        return to_local_naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")


def to_local_naive(value: datetime) -> datetime:
    """Aware values are converted to local time before the offset is dropped."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.replace(tzinfo=None)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
