"""W3C datetime helpers for sitemap date fields."""

from __future__ import annotations

import calendar
from datetime import UTC, date, datetime, timedelta, timezone
import re
from typing import Final

W3C_DATETIME_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<year>\d{4})"
    r"(?:-(?P<month>\d{2})"
    r"(?:-(?P<day>\d{2})"
    r"(?:T(?P<hour>\d{2}):(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?P<fraction>\.\d+)?)?"
    r"(?P<tzd>Z|[+-]\d{2}:\d{2}))?)?)?$"
)

W3C_DATETIME_EXAMPLES: Final[tuple[str, ...]] = (
    "2024",
    "2024-01",
    "2024-01-15",
    "2024-01-15T10:30:00Z",
    "2024-01-15T10:30:00.000Z",
    "2024-01-15T10:30:00+02:00",
)


class W3CDatetimeError(ValueError):
    """Raised when text is not a valid W3C datetime."""


def _check_ranges(match: re.Match[str]) -> None:
    year = int(match["year"])
    month = int(match["month"] or 1)
    day = int(match["day"] or 1)

    if not 1 <= year <= 9999:
        raise W3CDatetimeError(f"Invalid year: {year}")

    if not 1 <= month <= 12:
        raise W3CDatetimeError(f"Invalid month: {month}")

    days_in_month = calendar.monthrange(year, month)[1]
    if not 1 <= day <= days_in_month:
        raise W3CDatetimeError(f"Invalid day: {day} for month {month}")

    if match["hour"] is None:
        return

    if int(match["hour"]) > 23 or int(match["minute"]) > 59:
        raise W3CDatetimeError("Invalid time of day")

    if match["second"] is not None and int(match["second"]) > 59:
        raise W3CDatetimeError("Invalid seconds value")

    tzd = match["tzd"]
    if tzd != "Z" and (int(tzd[1:3]) > 23 or int(tzd[4:6]) > 59):
        raise W3CDatetimeError(f"Invalid timezone offset: {tzd}")


def validate_w3c_datetime(value: str) -> str:
    """Return ``value`` unchanged or raise ``W3CDatetimeError``."""

    match = W3C_DATETIME_PATTERN.match(value)
    if match is None:
        raise W3CDatetimeError("Date does not match W3C Datetime format")

    _check_ranges(match)
    return value


def is_valid_w3c_datetime(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False

    try:
        validate_w3c_datetime(value)
    except W3CDatetimeError:
        return False

    return True


def parse_w3c_datetime(value: str) -> datetime:
    """Parse W3C datetime text into an aware UTC datetime.

    Reduced precision values (``2024``, ``2024-05``) resolve to the first
    instant of the period in UTC.
    """

    match = W3C_DATETIME_PATTERN.match(value)
    if match is None:
        raise W3CDatetimeError(f"Date does not match W3C Datetime format: {value!r}")

    _check_ranges(match)

    tzinfo: timezone = UTC
    tzd = match["tzd"]
    if tzd and tzd != "Z":
        sign = 1 if tzd[0] == "+" else -1
        offset = timedelta(hours=int(tzd[1:3]), minutes=int(tzd[4:6]))
        tzinfo = timezone(sign * offset)

    fraction = match["fraction"]
    microsecond = int(float(fraction) * 1_000_000) if fraction else 0

    parsed = datetime(
        int(match["year"]),
        int(match["month"] or 1),
        int(match["day"] or 1),
        int(match["hour"] or 0),
        int(match["minute"] or 0),
        int(match["second"] or 0),
        microsecond,
        tzinfo=tzinfo,
    )
    return parsed.astimezone(UTC)


def to_w3c_datetime(value: date | datetime | str) -> str:
    """Render a date or datetime as W3C datetime text.

    Naive datetimes are treated as UTC.
    """

    if isinstance(value, str):
        return value

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        text = value.isoformat(timespec="seconds")
        if text.endswith("+00:00"):
            text = f"{text[:-6]}Z"
        return text

    return value.isoformat()


def is_future_datetime(value: str, *, now: datetime | None = None) -> bool:
    try:
        parsed = parse_w3c_datetime(value)
    except W3CDatetimeError:
        return False

    reference = now or datetime.now(UTC)
    return parsed > reference


__all__ = [
    "W3CDatetimeError",
    "W3C_DATETIME_EXAMPLES",
    "W3C_DATETIME_PATTERN",
    "is_future_datetime",
    "is_valid_w3c_datetime",
    "parse_w3c_datetime",
    "to_w3c_datetime",
    "validate_w3c_datetime",
]
