"""
Shared utility functions for the formschema package.
"""

import re
from datetime import date, datetime, time

from dateutil import parser as dateutil_parser

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(
    r"^(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(?:\.\d+)?"
    r"(?P<offset>z|[+-]\d{2}(?::?\d{2})?)$",
    re.IGNORECASE,
)
_DATE_TIME_SEPARATOR = re.compile(r"t|\s", re.IGNORECASE)


def parse_date(value: str) -> date | None:
    """Parse a strict full-date string (YYYY-MM-DD).

    Returns None if the value is not a real calendar date.

    Args:
        value: The date string to parse.

    Returns:
        A date object, or None if parsing fails.
    """
    if not value or not isinstance(value, str) or not _DATE_RE.match(value):
        return None

    try:
        return dateutil_parser.isoparse(value).date()
    except (ValueError, OverflowError):
        return None


def parse_time(value: str) -> time | None:
    """Parse an RFC 3339 partial time with a mandatory offset (e.g. 10:30:00Z).

    Returns None if the value is malformed or out of range.
    """
    if not value or not isinstance(value, str):
        return None

    match = _TIME_RE.match(value)
    if match is None:
        return None

    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    second = int(match.group("second"))
    if hour > 23 or minute > 59 or second > 60:
        return None

    offset = match.group("offset")
    offset_hours = offset_minutes = sign = 0
    if offset.lower() != "z":
        sign = -1 if offset[0] == "-" else 1
        digits = offset[1:].replace(":", "")
        offset_hours = int(digits[:2])
        offset_minutes = int(digits[2:] or 0)
        if offset_hours > 23 or offset_minutes > 59:
            return None

    # A leap second may only fall on 23:59 UTC
    if second == 60:
        utc_minute = minute - offset_minutes * sign
        utc_hour = hour - offset_hours * sign - (1 if utc_minute < 0 else 0)
        if utc_hour not in (23, -1) or utc_minute not in (59, -1):
            return None

    return time(hour, minute, min(second, 59))


def parse_datetime(value: str) -> datetime | None:
    """Parse an RFC 3339 date-time string (time zone required).

    Accepts `T`, `t`, or a space between the date and time parts.
    """
    if not value or not isinstance(value, str):
        return None

    parts = _DATE_TIME_SEPARATOR.split(value, maxsplit=1)
    if len(parts) != 2:
        return None

    date_part, time_part = parts
    parsed_date = parse_date(date_part)
    parsed_time = parse_time(time_part)
    if parsed_date is None or parsed_time is None:
        return None

    return datetime.combine(parsed_date, parsed_time)


def slugify(text: str) -> str:
    """Lowercase a title and join its words with hyphens."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def to_pascal_case(text: str) -> str:
    """Turn 'contact us form' into 'ContactUsForm'."""
    words = re.findall(r"[A-Za-z0-9]+", text)
    return "".join(word[0].upper() + word[1:].lower() for word in words)
