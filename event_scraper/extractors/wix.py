"""Wix Events widgets, read from the page's wix-warmup-data script."""

from typing import Any, Optional

from event_scraper.extractors.base import build_event, dig, load_json, make_soup
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import is_valid_timezone, parse_utc
from event_scraper.utils.text import clean_text, sanitize_url
from event_scraper.utils.venue import format_coordinates


def find_wix_events(data: Any) -> list:
    """The first events.events list found at any depth."""
    if isinstance(data, dict):
        nested = dig(data, "events", "events")
        if isinstance(nested, list):
            return nested
        values = data.values()
    elif isinstance(data, list):
        values = data
    else:
        return []
    for value in values:
        found = find_wix_events(value)
        if found:
            return found
    return []


class WixEventsExtractor:
    def identifier(self) -> str:
        return "wix_events"

    def can_handle(self, content: str) -> bool:
        return 'id="wix-warmup-data"' in content or "id='wix-warmup-data'" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        script = make_soup(content).find("script", id="wix-warmup-data")
        if script is None:
            return []
        data = load_json(script.string or script.get_text())
        if not data:
            return []

        events = []
        for raw in find_wix_events(data):
            if not isinstance(raw, dict):
                continue
            event = self.normalize(raw, source_url)
            if event is not None:
                events.append(event)
        return events

    def normalize(self, raw: dict, source_url: str = "") -> Optional[NormalizedEvent]:
        fields: dict[str, Any] = {
            "title": clean_text(raw.get("title")),
            "description": clean_text(raw.get("description") or raw.get("about")),
        }
        self.scheduling(fields, dig(raw, "scheduling", "config", default={}))
        self.location(fields, raw.get("location") or {})
        fields["ticket_url"] = sanitize_url(dig(raw, "registration", "external", "registration"))
        fields["image_url"] = sanitize_url(dig(raw, "mainImage", "url"))
        return build_event(fields, source_url)

    @staticmethod
    def scheduling(fields: dict, config: Any) -> None:
        # Unscheduled events carry a placeholder string here ("TBD")
        if not isinstance(config, dict):
            return
        timezone = config.get("timeZoneId") or "UTC"
        if not is_valid_timezone(timezone):
            timezone = "UTC"
        start = parse_utc(config.get("startDate"), timezone)
        if start:
            fields["start_date"], fields["start_time"] = start.date, start.time
            fields["venue_timezone"] = timezone
        end = parse_utc(config.get("endDate"), timezone)
        if end:
            fields["end_date"], fields["end_time"] = end.date, end.time

    @staticmethod
    def location(fields: dict, location: dict) -> None:
        if not isinstance(location, dict) or not location:
            return
        fields["venue_name"] = clean_text(location.get("name"))
        fields["venue_address"] = clean_text(location.get("address"))

        full = location.get("fullAddress") or {}
        if isinstance(full, dict) and full:
            fields["venue_city"] = clean_text(full.get("city"))
            fields["venue_state"] = clean_text(full.get("subdivision"))
            fields["venue_zip"] = clean_text(full.get("postalCode"))
            fields["venue_country"] = clean_text(full.get("country"))
            street = full.get("streetAddress") or {}
            if isinstance(street, dict):
                parts = [clean_text(street.get("number")), clean_text(street.get("name"))]
                joined = " ".join(p for p in parts if p)
                if joined:
                    fields["venue_address"] = joined

        coords = location.get("coordinates") or {}
        if isinstance(coords, dict) and coords.get("lat") and coords.get("lng"):
            fields["venue_coordinates"] = format_coordinates(coords["lat"], coords["lng"])
