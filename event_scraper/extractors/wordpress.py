"""WordPress event plugins: The Events Calendar (Tribe) and generic REST posts.

Handles both a REST response fetched directly and an HTML page whose REST
endpoint can be discovered from its markup.
"""

import re
from typing import Any, Optional
from urllib.parse import urlparse

from rich.console import Console

from event_scraper.extractors.base import build_event, dig, load_json, looks_like_json
from event_scraper.fetch import HttpClient
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import ParsedDateTime, parse_datetime
from event_scraper.utils.text import clean_text, first_text, sanitize_url
from event_scraper.utils.venue import format_coordinates

console = Console()

# Sites whose Tribe endpoints return unrelated or duplicate listings
SKIP_DOMAINS = {"resoundpresents.com"}

TRIBE_ENDPOINT = "/wp-json/tribe/events/v1/events?per_page=100"
TRIBE_CONTAINER_RE = re.compile(
    r"""<(?:div|section|article|main)[^>]+(?:class|id)=["'][^"']*tribe-events[^"']*["'][^>]*>""", re.I
)
API_LINK_RE = re.compile(r"""<link[^>]+rel=["']https://api\.w\.org/["'][^>]+href=["']([^"']+)["']""", re.I)

FORMAT_TRIBE_V1 = "tribe_v1"
FORMAT_TRIBE_WP = "tribe_wp"
FORMAT_GENERIC = "generic_wp"


def detect_format(data: Any) -> str:
    if isinstance(data, dict) and "events" in data and "rest_url" in data:
        return FORMAT_TRIBE_V1
    first = dig(data, 0)
    if isinstance(first, dict) and "id" in first:
        if "start_date" in first or dig(first, "meta", "_EventStartDate"):
            return FORMAT_TRIBE_WP
    return FORMAT_GENERIC


def is_events_payload(data: Any) -> bool:
    if isinstance(data, dict):
        return "events" in data and "rest_url" in data
    return detect_format(data) == FORMAT_TRIBE_WP


def _details_time(details: Any) -> str:
    if not isinstance(details, dict) or not details.get("hour") or not details.get("minutes"):
        return ""
    try:
        return f"{int(details['hour']):02d}:{int(details['minutes']):02d}"
    except (TypeError, ValueError):
        return ""


def _rendered(value: Any) -> Any:
    return value.get("rendered") if isinstance(value, dict) else value


class WordPressExtractor:
    def __init__(self, client: HttpClient):
        self.client = client

    def identifier(self) -> str:
        return "wordpress"

    def can_handle(self, content: str) -> bool:
        if looks_like_json(content) and is_events_payload(load_json(content)):
            return True
        if TRIBE_CONTAINER_RE.search(content) or "/wp-json/tribe/events/" in content:
            return True
        return "wp-content" in content and "tribe_events" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        host = re.sub(r"^www\.", "", urlparse(source_url).hostname or "")
        if host in SKIP_DOMAINS:
            console.print(f"[dim]Skipping WordPress extraction for {host}[/dim]")
            return []

        if looks_like_json(content):
            data = load_json(content)
            if isinstance(data, (dict, list)):
                return self.from_json(data, source_url)

        api_url = self.discover_endpoint(content, source_url)
        if not api_url:
            return []
        data = self.fetch_json(api_url)
        if data is None:
            return []
        return self.from_json(data, source_url)

    def discover_endpoint(self, content: str, source_url: str) -> Optional[str]:
        parsed = urlparse(source_url)
        base_url = f"{parsed.scheme or 'https'}://{parsed.netloc}"

        if "/wp-json/tribe/events/v1/events" in content:
            return base_url + TRIBE_ENDPOINT

        match = API_LINK_RE.search(content)
        if match:
            tribe_url = match.group(1).rstrip("/") + "/tribe/events/v1/events?per_page=100"
            if self.fetch_json(tribe_url):
                return tribe_url

        if TRIBE_CONTAINER_RE.search(content):
            return base_url + TRIBE_ENDPOINT
        return None

    def fetch_json(self, url: str) -> Any:
        result = self.client.get(url, headers={"Accept": "application/json"})
        if not result.success or result.status_code != 200:
            return None
        data = load_json(result.body)
        return data if isinstance(data, (dict, list)) else None

    def from_json(self, data: Any, source_url: str) -> list[NormalizedEvent]:
        fmt = detect_format(data)
        if fmt == FORMAT_TRIBE_V1:
            raw_events = data.get("events") or []
        elif isinstance(data, list):
            raw_events = data
        else:
            raw_events = []

        mapper = {
            FORMAT_TRIBE_V1: self.map_tribe_v1,
            FORMAT_TRIBE_WP: self.map_tribe_wp,
        }.get(fmt, self.map_generic)

        events = []
        for raw in raw_events:
            if not isinstance(raw, dict):
                continue
            fields = mapper(raw)
            if not fields.get("start_date"):
                continue
            fields.setdefault("event_type", "Event")
            fields["end_date"] = fields.get("end_date") or fields["start_date"]
            event = build_event(fields, source_url)
            if event is not None:
                events.append(event)
        return events

    def map_tribe_v1(self, event: dict) -> dict:
        start = parse_datetime(event.get("start_date"))
        end = parse_datetime(event.get("end_date"))
        start_time = _details_time(event.get("start_date_details")) or start.time
        end_time = _details_time(event.get("end_date_details")) or end.time
        if event.get("all_day"):
            start_time = end_time = ""

        venue = event.get("venue") if isinstance(event.get("venue"), dict) else {}
        organizer = event.get("organizer")
        if isinstance(organizer, list):
            organizer = organizer[0] if organizer else {}
        if not isinstance(organizer, dict):
            organizer = {}

        return {
            "title": clean_text(event.get("title")),
            "description": clean_text(event.get("description")),
            "start_date": start.date,
            "start_time": start_time,
            "end_date": end.date,
            "end_time": end_time,
            "venue_name": clean_text(venue.get("venue")),
            "venue_address": clean_text(venue.get("address")),
            "venue_city": clean_text(venue.get("city")),
            "venue_state": first_text(venue.get("state"), venue.get("province")),
            "venue_zip": first_text(venue.get("zip"), venue.get("postal_code")),
            "venue_country": clean_text(venue.get("country")),
            "venue_phone": clean_text(venue.get("phone")),
            "venue_website": sanitize_url(venue.get("website") or venue.get("url")),
            "venue_coordinates": format_coordinates(venue.get("geo_lat"), venue.get("geo_lng")),
            "organizer": clean_text(organizer.get("organizer")),
            "organizer_url": sanitize_url(organizer.get("website") or organizer.get("url")),
            "price": clean_text(event.get("cost")),
            "ticket_url": sanitize_url(event.get("website") or event.get("url")),
            "image_url": sanitize_url(dig(event, "image", "url")),
        }

    def map_tribe_wp(self, event: dict) -> dict:
        meta = event.get("meta") if isinstance(event.get("meta"), dict) else {}
        start = parse_datetime(meta.get("_EventStartDate"))
        end = parse_datetime(meta.get("_EventEndDate"))
        return {
            "title": first_text(_rendered(event.get("title"))),
            "description": first_text(_rendered(event.get("content")), event.get("description")),
            "start_date": start.date,
            "start_time": start.time,
            "end_date": end.date,
            "end_time": end.time,
            "venue_name": clean_text(meta.get("_VenueName")),
            "venue_address": clean_text(meta.get("_VenueAddress")),
            "venue_city": clean_text(meta.get("_VenueCity")),
            "venue_state": first_text(meta.get("_VenueState"), meta.get("_VenueProvince")),
            "venue_zip": clean_text(meta.get("_VenueZip")),
            "venue_country": clean_text(meta.get("_VenueCountry")),
            "venue_coordinates": format_coordinates(meta.get("_VenueLat"), meta.get("_VenueLng")),
            "price": clean_text(meta.get("_EventCost")),
            "ticket_url": sanitize_url(meta.get("_EventURL") or event.get("link")),
            "image_url": sanitize_url(dig(event, "_embedded", "wp:featuredmedia", 0, "source_url")),
        }

    def map_generic(self, event: dict) -> dict:
        start = self._first_parsed(event, ("start_date", "event_date", "date", "startDate"))
        end = self._first_parsed(event, ("end_date", "endDate"))

        image = dig(event, "_embedded", "wp:featuredmedia", 0, "source_url") or dig(event, "image", "url")
        if not image and isinstance(event.get("image"), str):
            image = event["image"]

        return {
            "title": first_text(_rendered(event.get("title")), event.get("name")),
            "description": first_text(_rendered(event.get("content")), event.get("description"), event.get("body")),
            "start_date": start.date,
            "start_time": start.time,
            "end_date": end.date,
            "end_time": end.time,
            "venue_name": first_text(event.get("venue"), event.get("venue_name"), event.get("location")),
            "venue_address": clean_text(event.get("address")),
            "venue_city": clean_text(event.get("city")),
            "venue_state": clean_text(event.get("state")),
            "venue_zip": first_text(event.get("zip"), event.get("postal_code")),
            "venue_country": clean_text(event.get("country")),
            "price": first_text(event.get("cost"), event.get("price")),
            "ticket_url": sanitize_url(event.get("website") or event.get("url") or event.get("link")),
            "image_url": sanitize_url(image),
        }

    @staticmethod
    def _first_parsed(event: dict, keys: tuple) -> ParsedDateTime:
        for key in keys:
            value = event.get(key)
            if value and isinstance(value, str):
                parsed = parse_datetime(value)
                if parsed:
                    return parsed
        return ParsedDateTime()
