"""iCalendar (ICS) feed extraction."""

import re
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Optional

from dateutil import rrule
from icalendar import Calendar
from rich.console import Console

from event_scraper.extractors.base import build_event
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import get_zone, today
from event_scraper.utils.text import clean_text, sanitize_url
from event_scraper.utils.venue import split_location

console = Console()

VCALENDAR_RE = re.compile(r"^BEGIN:VCALENDAR", re.I | re.M)

# Recurring events expand over this window only
RECURRENCE_LOOKBACK_DAYS = 1
RECURRENCE_HORIZON_DAYS = 365
MAX_OCCURRENCES = 100


def zone_name(tz: Optional[tzinfo], when: Optional[datetime] = None) -> str:
    if tz is None:
        return ""
    name = getattr(tz, "key", None) or getattr(tz, "zone", None)
    if name:
        return str(name)
    return tz.tzname(when) or ""


def is_utc(name: str) -> bool:
    return name.upper() in ("UTC", "Z", "GMT", "ETC/UTC")


def calendar_timezone(cal: Calendar) -> str:
    """Feed-level zone from X-WR-TIMEZONE, else the first VTIMEZONE."""
    name = str(cal.get("X-WR-TIMEZONE") or "").strip()
    if name and get_zone(name):
        return name
    for component in cal.walk("VTIMEZONE"):
        tzid = str(component.get("TZID") or "").strip()
        if tzid and get_zone(tzid):
            return tzid
    return ""


def parse_ics_calendar(content: str, source_url: str = "", default_timezone: str = "") -> list[NormalizedEvent]:
    """Parse ICS text into events. Malformed feeds yield an empty list.

    default_timezone applies when the feed declares no zone of its own.
    """
    try:
        cal = Calendar.from_ical(content.strip())
    except (ValueError, IndexError, KeyError) as e:
        console.print(f"[dim]Unparseable ICS feed {source_url}: {e}[/dim]")
        return []

    cal_tz = calendar_timezone(cal) or (default_timezone if get_zone(default_timezone) else "")
    events = []
    for component in cal.walk("VEVENT"):
        for start, end in _occurrences(component):
            event = _normalize(component, start, end, cal_tz, source_url)
            if event is not None:
                events.append(event)
    return events


def _decoded(component: Any, key: str) -> Any:
    prop = component.get(key)
    if prop is None:
        return None
    return getattr(prop, "dt", prop)


def _occurrences(component: Any) -> list[tuple[Any, Any]]:
    start = _decoded(component, "DTSTART")
    end = _decoded(component, "DTEND")
    if start is None:
        return [(None, end)]

    rule = component.get("RRULE")
    if rule is None:
        return [(start, end)]

    duration = (end - start) if end is not None and type(end) is type(start) else None
    is_all_day = not isinstance(start, datetime)
    anchor = start if not is_all_day else datetime.combine(start, datetime.min.time())
    try:
        rule_set = rrule.rrulestr(rule.to_ical().decode(), dtstart=anchor, forceset=True)
    except (ValueError, TypeError) as e:
        console.print(f"[dim]Unsupported RRULE ({e}), using first occurrence[/dim]")
        return [(start, end)]

    exdates = component.get("EXDATE") or []
    if not isinstance(exdates, list):
        exdates = [exdates]
    for exdate in exdates:
        for item in getattr(exdate, "dts", []):
            value = item.dt
            if not isinstance(value, datetime):
                value = datetime.combine(value, datetime.min.time())
            rule_set.exdate(value)

    window_start = datetime.combine(today() - timedelta(days=RECURRENCE_LOOKBACK_DAYS), datetime.min.time())
    window_end = window_start + timedelta(days=RECURRENCE_HORIZON_DAYS)
    if anchor.tzinfo is not None:
        window_start = window_start.replace(tzinfo=anchor.tzinfo)
        window_end = window_end.replace(tzinfo=anchor.tzinfo)

    try:
        matches = rule_set.between(window_start, window_end, inc=True)
    except TypeError:
        # Mixed naive and aware EXDATE values
        return [(start, end)]

    occurrences = []
    for occurrence in matches:
        if is_all_day:
            occurrence = occurrence.date()
        occurrences.append((occurrence, occurrence + duration if duration is not None else None))
        if len(occurrences) >= MAX_OCCURRENCES:
            break
    return occurrences


def _event_timezone(start: Any, cal_tz: str) -> str:
    if cal_tz:
        return cal_tz
    if isinstance(start, datetime):
        name = zone_name(start.tzinfo, start)
        if name and not is_utc(name):
            return name
    return ""


def _split(value: Any, event_tz: str) -> tuple[str, str, str]:
    """(date, time, zone) for a DTSTART/DTEND value."""
    if isinstance(value, datetime):
        name = zone_name(value.tzinfo, value)
        if value.tzinfo is not None and name and not is_utc(name):
            return value.strftime("%Y-%m-%d"), value.strftime("%H:%M"), name
        if value.tzinfo is not None and event_tz:
            local = value.astimezone(get_zone(event_tz))
            return local.strftime("%Y-%m-%d"), local.strftime("%H:%M"), event_tz
        # Floating times are wall-clock in the feed's zone
        return value.strftime("%Y-%m-%d"), value.strftime("%H:%M"), event_tz
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d"), "", event_tz
    return "", "", event_tz


def _normalize(component: Any, start: Any, end: Any, cal_tz: str, source_url: str) -> Optional[NormalizedEvent]:
    event_tz = _event_timezone(start, cal_tz)
    url = sanitize_url(str(component.get("URL") or ""))
    fields: dict[str, Any] = {
        "title": clean_text(component.get("SUMMARY")),
        "description": clean_text(component.get("DESCRIPTION")),
        "venue_timezone": event_tz,
        "ticket_url": url,
        "source_url": url or source_url,
    }

    organizer = component.get("ORGANIZER")
    if organizer is not None:
        params = getattr(organizer, "params", {})
        fields["organizer"] = clean_text(params.get("CN") or str(organizer).replace("mailto:", ""))

    start_date, start_time, start_tz = _split(start, event_tz)
    fields.update(start_date=start_date, start_time=start_time)
    if start_tz:
        fields["venue_timezone"] = start_tz

    end_date, end_time, _ = _split(end, event_tz)
    if end is not None and not isinstance(end, datetime) and isinstance(end, date):
        # DTEND of an all-day event is exclusive
        end_date = (end - timedelta(days=1)).strftime("%Y-%m-%d")
    fields.update(end_date=end_date, end_time=end_time)

    location = clean_text(component.get("LOCATION"))
    if location:
        venue, address = split_location(location)
        fields["venue_name"] = venue
        fields["venue_address"] = address or location

    geo = component.get("GEO")
    if geo is not None and hasattr(geo, "latitude"):
        fields["venue_coordinates"] = f"{geo.latitude},{geo.longitude}"

    return build_event(fields, source_url)


class IcsExtractor:
    """Events from raw BEGIN:VCALENDAR text."""

    def identifier(self) -> str:
        return "ics_feed"

    def can_handle(self, content: str) -> bool:
        return bool(content.strip()) and bool(VCALENDAR_RE.search(content))

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        return parse_ics_calendar(content, source_url)
