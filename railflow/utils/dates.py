"""Date and time parsing helpers"""

from datetime import date, datetime, time
from typing import Optional, Tuple, Union

from railflow.errors import InvalidRangeError


DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """
    Parse a date value

    Accepted string formats: YYYYMMDD, YYYY-MM-DD, YYYY/MM/DD and MM/DD/YYYY.

    Args:
        value: date, datetime or string

    Returns:
        Parsed date

    Raises:
        InvalidRangeError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidRangeError(f"Unsupported date value: {value!r}")

    text = value.strip()

    try:
        if len(text) == 8 and text.isdigit():
            return datetime.strptime(text, '%Y%m%d').date()

        if '-' in text:
            return datetime.strptime(text, '%Y-%m-%d').date()

        if '/' in text:
            parts = text.split('/')
            if len(parts) == 3 and len(parts[0]) == 4:
                return datetime.strptime(text, '%Y/%m/%d').date()
            return datetime.strptime(text, '%m/%d/%Y').date()
    except ValueError as e:
        raise InvalidRangeError(f"Invalid date {value!r}: {e}") from e

    raise InvalidRangeError(f"Unrecognized date format: {value!r}")


def parse_time(value: Optional[str]) -> Optional[time]:
    """
    Parse a clock time in HHMM or HH:MM[:SS] form

    Returns None for empty or malformed values; times are optional on records.
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    try:
        if len(text) == 4 and text.isdigit():
            return time(int(text[:2]), int(text[2:]))

        if ':' in text:
            parts = [int(p) for p in text.split(':')]
            return time(*parts[:3])
    except (TypeError, ValueError):
        return None

    return None


def validate_range(start: DateLike, end: DateLike) -> Tuple[date, date]:
    """
    Parse and check an inclusive date range

    Raises:
        InvalidRangeError: If either bound is unparsable or end < start
    """
    start_date = parse_date(start)
    end_date = parse_date(end)

    if end_date < start_date:
        raise InvalidRangeError(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )

    return start_date, end_date
