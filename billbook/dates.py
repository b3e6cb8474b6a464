"""Calendar dates in ``DD/MM/YYYY`` form and reference-zone timestamps.

Bill dates are stored and displayed as ``DD/MM/YYYY`` strings but compared as
``datetime.date`` values. Creation timestamps are full, timezone-aware
datetimes taken in the reference zone so that a bill created "today" carries a
``date`` and a ``created_at`` that agree with each other.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from billbook.constants import DATE_FORMAT, REFERENCE_TZ
from billbook.exceptions import ValidationError

_DATE_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def parse_date(value: str) -> date:
    """Parse ``DD/MM/YYYY`` into a date. Raises ValidationError on malformed or impossible dates."""
    match = _DATE_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValidationError(f"Invalid date {value!r}, expected {DATE_FORMAT}")
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f"Invalid date {value!r}: {exc}") from exc


def format_date(value: date) -> str:
    return f"{value.day:02d}/{value.month:02d}/{value.year:04d}"


def to_date_key(value: str) -> str:
    """Return the sortable ``YYYY-MM-DD`` key for a ``DD/MM/YYYY`` string."""
    return parse_date(value).isoformat()


def now_timestamp() -> datetime:
    return datetime.now(REFERENCE_TZ)


def today() -> str:
    return format_date(now_timestamp().date())


def normalize_timestamp(value: datetime) -> datetime:
    """Convert to the reference zone. Naive datetimes are taken to already be in it."""
    if value.tzinfo is None:
        return value.replace(tzinfo=REFERENCE_TZ)
    return value.astimezone(REFERENCE_TZ)
