"""
Wall-clock arithmetic.

Times of day cross the public boundary as "HH:MM" 24-hour strings.
Internally they are integers of minutes since midnight, combined with a
single reference calendar date when an absolute datetime is needed.
Minute-of-day results wrap modulo 1440, so offsets that push a time
before 00:00 or past 24:00 land on the previous or next day instead of
raising.
"""

import re
from datetime import date, datetime, time, timedelta, tzinfo

from .config import MINUTES_PER_DAY, MINUTES_PER_HOUR

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(value: str) -> int:
    """
    Parse an "HH:MM" string into minutes since midnight.

    Args:
        value: Time of day, e.g. "07:30"

    Returns:
        Minutes since midnight (0–1439)

    Raises:
        ValueError: If the string is not a valid 24-hour time
    """
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid time of day: {value!r}. Expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r}. Expected HH:MM")
    return hours * MINUTES_PER_HOUR + minutes


def try_parse_hhmm(value: str | None) -> int | None:
    """Like parse_hhmm() but returns None for missing or malformed input."""
    if value is None:
        return None
    try:
        return parse_hhmm(value)
    except ValueError:
        return None


def is_valid_hhmm(value: str | None) -> bool:
    """Return True if value parses as an "HH:MM" time of day."""
    return try_parse_hhmm(value) is not None


def format_hhmm(minutes: int) -> str:
    """
    Format minutes since midnight as "HH:MM", wrapping mod 1440.

    Negative values carry into the previous day (-30 → "23:30").
    """
    wrapped = int(minutes) % MINUTES_PER_DAY
    return f"{wrapped // MINUTES_PER_HOUR:02d}:{wrapped % MINUTES_PER_HOUR:02d}"


def format_hour(hour: int, minute: int = 0) -> str:
    """Format an hour (any integer, wrapped to 0–23) and minute as "HH:MM"."""
    return format_hhmm(hour * MINUTES_PER_HOUR + minute)


def shift_hhmm(value: str, minutes: int) -> str:
    """Shift an "HH:MM" string by a signed number of minutes."""
    return format_hhmm(parse_hhmm(value) + minutes)


def hours_to_minutes(hours: float) -> int:
    """Convert a (possibly fractional) hour count to whole minutes."""
    return int(round(hours * MINUTES_PER_HOUR))


def hour_of(value: str) -> int:
    """Return the hour component of an "HH:MM" string."""
    return parse_hhmm(value) // MINUTES_PER_HOUR


def at_minutes(reference_date: date, minutes: int, tz: tzinfo | None = None) -> datetime:
    """
    Combine a reference date with a minute-of-day offset.

    Minutes outside 0–1439 roll onto neighbouring calendar days, so
    ``at_minutes(d, -30)`` is 23:30 on the day before ``d``.
    """
    midnight = datetime.combine(reference_date, time(0, 0), tzinfo=tz)
    return midnight + timedelta(minutes=minutes)


def at_time_of_day(reference_date: date, value: str, tz: tzinfo | None = None) -> datetime:
    """Parse an "HH:MM" string against the reference date."""
    return at_minutes(reference_date, parse_hhmm(value), tz)


def add_minutes(moment: datetime, minutes: int) -> datetime:
    """Return moment shifted by a signed number of minutes."""
    return moment + timedelta(minutes=minutes)
