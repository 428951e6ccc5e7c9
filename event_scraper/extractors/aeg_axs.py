"""AEG venue feeds hosted on aegwebprod.blob.core.windows.net."""

import re
from typing import Any, Optional

from event_scraper.extractors.base import build_event, dig, load_json, looks_like_json
from event_scraper.fetch import HttpClient, fetch_text
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_iso
from event_scraper.utils.text import clean_text, sanitize_url

JSON_HOST = "aegwebprod.blob.core.windows.net"
DATA_FILE_RE = re.compile(r'data-file="(https://' + re.escape(JSON_HOST) + r'[^"]+)"')

# Preferred media keys, largest first
IMAGE_SIZE_KEYS = ["86", "17", "18"]
AVAILABILITY = {1: "InStock", 7: "SoldOut"}


def is_aeg_feed(content: str) -> bool:
    if not looks_like_json(content) or not content.lstrip().startswith("{"):
        return False
    data = load_json(content)
    return (
        isinstance(data, dict)
        and dig(data, "meta", "total") is not None
        and isinstance(data.get("events"), list)
    )


def build_title(raw: dict) -> str:
    title = raw.get("title") or {}
    if not isinstance(title, dict):
        return clean_text(title)
    parts = []
    if title.get("headlinersText"):
        parts.append(clean_text(title["headlinersText"]))
    if title.get("supportingText"):
        parts.append("with " + clean_text(title["supportingText"]))
    if title.get("tour"):
        parts.append("- " + clean_text(title["tour"]))
    return " ".join(parts)


def format_price(low: Any, high: Any) -> str:
    try:
        low = float(low or 0)
        high = float(high or 0)
    except (TypeError, ValueError):
        return ""
    if low > 0 and high > 0 and low != high:
        return f"${low:,.2f} - ${high:,.2f}"
    if low > 0:
        return f"${low:,.2f}"
    if high > 0:
        return f"${high:,.2f}"
    return ""


class AegAxsExtractor:
    """AEG/AXS JSON feeds, either referenced by a data-file attribute or fetched directly."""

    def __init__(self, client: HttpClient):
        self.client = client

    def identifier(self) -> str:
        return "aeg_axs"

    def can_handle(self, content: str) -> bool:
        return f'data-file="https://{JSON_HOST}' in content or is_aeg_feed(content)

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        if is_aeg_feed(content):
            data = load_json(content)
        else:
            match = DATA_FILE_RE.search(content)
            if not match:
                return []
            data = load_json(fetch_text(self.client, match.group(1)))

        if not isinstance(data, dict) or not data.get("events"):
            return []

        events = []
        for raw in data["events"]:
            if not isinstance(raw, dict):
                continue
            event = self.normalize(raw, source_url)
            if event is not None:
                events.append(event)
        return events

    def normalize(self, raw: dict, source_url: str = "") -> Optional[NormalizedEvent]:
        fields: dict[str, Any] = {
            "title": build_title(raw),
            "description": clean_text(raw.get("description") or raw.get("bio")),
        }

        start = parse_iso(raw.get("eventDateTimeISO"))
        if start:
            fields["start_date"] = start.date
            fields["start_time"] = start.time
        doors = parse_iso(raw.get("doorDateTime"))
        if doors:
            fields["doors_time"] = doors.time

        venue = raw.get("venue") or {}
        if isinstance(venue, dict):
            fields.update(
                venue_name=clean_text(venue.get("title")),
                venue_address=clean_text(venue.get("address")),
                venue_city=clean_text(venue.get("city")),
                venue_state=clean_text(venue.get("state")),
                venue_zip=clean_text(venue.get("postalCode")),
                venue_country=clean_text(venue.get("countryCode")),
            )

        fields["price"] = format_price(raw.get("ticketPriceLow"), raw.get("ticketPriceHigh"))

        media = raw.get("media") or {}
        for key in IMAGE_SIZE_KEYS:
            file_name = dig(media, key, "file_name")
            if file_name:
                fields["image_url"] = sanitize_url(file_name)
                break

        ticketing = raw.get("ticketing") or {}
        if isinstance(ticketing, dict):
            fields["ticket_url"] = sanitize_url(ticketing.get("url"))
            try:
                status_id = int(ticketing.get("statusId"))
            except (TypeError, ValueError):
                status_id = None
            fields["offer_availability"] = AVAILABILITY.get(status_id, "")

        if raw.get("age"):
            fields["age_restriction"] = clean_text(raw["age"])

        return build_event(fields, source_url)
