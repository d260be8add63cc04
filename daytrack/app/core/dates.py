"""
Calendar helpers shared by both stores.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from daytrack.app.core.exceptions import InvalidRequestError


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [00:00, next 00:00) interval covering a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_date_param(value: Optional[str], name: str = "date") -> date:
    """Parse a required YYYY-MM-DD query parameter (400 when missing/invalid)."""
    if not value:
        raise InvalidRequestError(f"{name} query parameter is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidRequestError(
            "Invalid date format", details={"parameter": name, "value": value}
        )


def parse_datetime_param(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an optional ISO-8601 datetime query parameter."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidRequestError(
            f"Invalid {name} datetime", details={"parameter": name, "value": value}
        )
    # Stored timestamps are naive local time
    return to_local_naive(parsed)
