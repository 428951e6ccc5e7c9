"""Date and time normalization.

Every extractor reduces source timestamps to the same three strings: a
calendar date (YYYY-MM-DD), a wall-clock time (HH:MM) and an IANA timezone
name. The helpers below never fall back to the machine's local zone.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union

from dateutil import parser as dateutil_parser
from dateutil import tz as dateutil_tz

# A trailing Z means UTC, which callers want converted, not preserved
_Z_SUFFIX_RE = re.compile(r"Z$", re.I)
_OFFSET_SUFFIX_RE = re.compile(r"[+-]\d{2}:?\d{2}$")
_ABBREV_SUFFIX_RE = re.compile(r"\s[A-Z]{2,5}$")
_LEADING_WEEKDAY_RE = re.compile(r"^[A-Za-z]+,\s*")
_YEAR_RE = re.compile(r"\b\d{4}\b")


@dataclass
class ParsedDateTime:
    """Normalized date, time and timezone. Blank strings mean unknown."""

    date: str = ""
    time: str = ""
    timezone: str = ""

    def __bool__(self) -> bool:
        return bool(self.date)


def get_zone(name: Optional[str]) -> Optional[tzinfo]:
    """Look up an IANA zone; None for blanks and unknown names."""
    if not name or not isinstance(name, str):
        return None
    name = name.strip()
    if not name:
        return None
    try:
        return dateutil_tz.gettz(name)
    except ValueError:
        return None


def is_valid_timezone(name: Optional[str]) -> bool:
    return get_zone(name) is not None


def has_embedded_timezone(value: str) -> bool:
    """True when value carries an explicit offset or zone abbreviation."""
    value = value.strip()
    if _Z_SUFFIX_RE.search(value):
        return False
    if _OFFSET_SUFFIX_RE.search(value):
        return True
    return bool(_ABBREV_SUFFIX_RE.search(value))


def _parse(value: str, default: Optional[datetime] = None) -> Optional[datetime]:
    try:
        return dateutil_parser.parse(value, default=default)
    except (ValueError, OverflowError):
        return None


def _zone_name(dt: datetime) -> str:
    zone = dt.tzinfo
    if zone is None:
        return ""
    key = getattr(zone, "key", None)
    if key:
        return key
    if isinstance(zone, dateutil_tz.tzutc):
        return "UTC"
    # Bare offsets have no IANA name
    return ""


def _fmt(dt: datetime, with_time: bool = True) -> tuple[str, str]:
    return dt.strftime("%Y-%m-%d"), dt.strftime("%H:%M") if with_time else ""


def parse_utc(value: Optional[str], timezone: str) -> ParsedDateTime:
    """Parse a UTC timestamp and convert it into timezone."""
    if not value:
        return ParsedDateTime()
    zone = get_zone(timezone)
    if zone is None:
        return ParsedDateTime()
    dt = _parse(str(value))
    if dt is None:
        return ParsedDateTime()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=dateutil_tz.UTC)
    local = dt.astimezone(zone)
    day, clock = _fmt(local)
    return ParsedDateTime(day, clock, timezone)


def parse_local(day: Optional[str], clock: Optional[str] = "", timezone: Optional[str] = "") -> ParsedDateTime:
    """Parse a wall-clock date and optional time; the zone is only recorded."""
    if not day:
        return ParsedDateTime()
    if timezone and not is_valid_timezone(timezone):
        timezone = ""
    text = f"{day} {clock}" if clock else str(day)
    dt = _parse(text)
    if dt is None:
        return ParsedDateTime()
    date_str, time_str = _fmt(dt, with_time=bool(clock))
    return ParsedDateTime(date_str, time_str, timezone or "")


def parse_iso(value: Optional[str]) -> ParsedDateTime:
    """Parse an ISO 8601 timestamp, keeping its own wall-clock time."""
    if not value:
        return ParsedDateTime()
    dt = _parse(str(value))
    if dt is None:
        return ParsedDateTime()
    date_str, time_str = _fmt(dt)
    return ParsedDateTime(date_str, time_str, _zone_name(dt))


def parse_ics(value: Optional[str], calendar_timezone: str = "UTC") -> ParsedDateTime:
    """Parse an iCalendar-style timestamp.

    Values without an embedded offset are read as UTC and converted into
    calendar_timezone when it is valid.
    """
    if not value:
        return ParsedDateTime()
    value = str(value).strip()
    dt = _parse(value)
    if dt is None:
        return ParsedDateTime()
    zone_name = _zone_name(dt)
    if not has_embedded_timezone(value) and is_valid_timezone(calendar_timezone):
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=dateutil_tz.UTC)
        dt = dt.astimezone(get_zone(calendar_timezone))
        zone_name = calendar_timezone
    elif dt.tzinfo is None:
        zone_name = "UTC"
    date_str, time_str = _fmt(dt)
    return ParsedDateTime(date_str, time_str, zone_name)


def parse_datetime(value: Optional[str], fallback_timezone: str = "") -> ParsedDateTime:
    """Parse any timestamp; convert into fallback_timezone when none is embedded.

    Naive values are taken as wall-clock time in fallback_timezone.
    """
    if not value:
        return ParsedDateTime()
    value = str(value).strip()
    dt = _parse(value)
    if dt is None:
        return ParsedDateTime()
    zone_name = _zone_name(dt)
    if not has_embedded_timezone(value) and is_valid_timezone(fallback_timezone):
        if dt.tzinfo is not None:
            dt = dt.astimezone(get_zone(fallback_timezone))
        zone_name = fallback_timezone
    date_str, time_str = _fmt(dt)
    return ParsedDateTime(date_str, time_str, zone_name)


def from_timestamp(value: Union[int, float, str], timezone: str = "", milliseconds: bool = False) -> ParsedDateTime:
    """Convert a Unix timestamp (optionally in ms) into timezone, else UTC."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return ParsedDateTime()
    if milliseconds:
        seconds /= 1000
    zone = get_zone(timezone) or dateutil_tz.UTC
    try:
        dt = datetime.fromtimestamp(seconds, tz=zone)
    except (OverflowError, OSError, ValueError):
        return ParsedDateTime()
    date_str, time_str = _fmt(dt)
    return ParsedDateTime(date_str, time_str, timezone if get_zone(timezone) else "")


def today() -> date:
    return date.today()


def to_date(value: Optional[str]) -> Optional[date]:
    """Calendar date of a free-form string, or None."""
    if not value:
        return None
    dt = _parse(str(value))
    return dt.date() if dt else None


def is_past_date(value: Optional[str], reference: Optional[date] = None) -> bool:
    """True when value falls strictly before the reference day.

    Missing or unparseable dates are never past.
    """
    day = to_date(value)
    if day is None:
        return False
    return day < (reference or today())


def parse_month_day(
    text: str,
    reference: Optional[date] = None,
    grace_days: int = 1,
    year: Optional[int] = None,
) -> Optional[date]:
    """Resolve a yearless date like "Fri, Dec 26" to its next occurrence.

    The date is placed in year (default: the reference year); if that lands
    more than grace_days before the reference day it rolls to the next year.
    Text that already carries a year is parsed as-is.
    """
    reference = reference or today()
    text = _LEADING_WEEKDAY_RE.sub("", text.strip())
    if not text:
        return None
    default = datetime(year or reference.year, 1, 1)
    dt = _parse(text, default=default)
    if dt is None:
        return None
    if _YEAR_RE.search(text):
        return dt.date()
    day = dt.date()
    if day < reference - timedelta(days=grace_days):
        try:
            day = day.replace(year=day.year + 1)
        except ValueError:
            # Feb 29 has no next-year twin
            day = day.replace(year=day.year + 1, day=28)
    return day


def parse_loose_date(text: str, reference: Optional[date] = None) -> Optional[str]:
    """YYYY-MM-DD for loose listing text, appending the current year when absent."""
    reference = reference or today()
    text = _LEADING_WEEKDAY_RE.sub("", text.strip())
    if not text:
        return None
    if not _YEAR_RE.search(text):
        text = f"{text} {reference.year}"
    dt = _parse(text)
    return dt.strftime("%Y-%m-%d") if dt else None


def parse_clock(text: Optional[str]) -> str:
    """HH:MM for a loose time string like "7:30 pm" or "8pm"."""
    if not text:
        return ""
    match = re.search(r"(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?", text, re.I)
    if match:
        hour = int(match.group(1)) % 12
        minute = int(match.group(2) or 0)
        if match.group(3).lower() == "p":
            hour += 12
        return f"{hour:02d}:{minute:02d}"
    match = re.search(r"\b(\d{1,2}):(\d{2})\b", text)
    if match and int(match.group(1)) < 24:
        return f"{int(match.group(1)):02d}:{match.group(2)}"
    return ""
