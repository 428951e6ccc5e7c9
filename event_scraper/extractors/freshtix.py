"""Freshtix venue pages: an inline `events = {date: [...]}` object."""

import re
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

from event_scraper.extractors.base import build_event, decode_object_at
from event_scraper.extractors.jsonld import iter_json_ld_blocks
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_clock, parse_iso
from event_scraper.utils.text import clean_text, sanitize_url

EVENTS_PROBE_RE = re.compile(r"""events\s*=\s*\{["']?\d{4}-\d{2}-\d{2}""")
EVENTS_ASSIGN_RE = re.compile(r"events\s*=\s*(?=\{)")


def organization_venue(content: str) -> dict[str, str]:
    """Venue fields from the page's Organization JSON-LD block."""
    for block in iter_json_ld_blocks(content):
        if not isinstance(block, dict) or block.get("@type") != "Organization":
            continue
        address = block.get("address") if isinstance(block.get("address"), dict) else {}
        venue = {
            "venue_name": clean_text(block.get("name")),
            "venue_address": clean_text(address.get("streetAddress")),
            "venue_city": clean_text(address.get("addressLocality")),
            "venue_state": clean_text(address.get("addressRegion")),
            "venue_zip": clean_text(address.get("postalCode")),
        }
        return {k: v for k, v in venue.items() if v}
    return {}


class FreshtixExtractor:
    def identifier(self) -> str:
        return "freshtix"

    def can_handle(self, content: str) -> bool:
        return "freshtix.com" in content and bool(EVENTS_PROBE_RE.search(content))

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        data = decode_object_at(content, EVENTS_ASSIGN_RE)
        if not isinstance(data, dict):
            return []

        venue = organization_venue(content)
        parsed = urlparse(source_url)
        base_url = f"{parsed.scheme or 'https'}://{parsed.netloc}"

        events = []
        for day_events in data.values():
            if not isinstance(day_events, list):
                continue
            for raw in day_events:
                if not isinstance(raw, dict):
                    continue
                event = self.normalize(raw, venue, base_url, source_url)
                if event is not None:
                    events.append(event)
        return events

    def normalize(self, raw: dict, venue: dict, base_url: str, source_url: str = "") -> Optional[NormalizedEvent]:
        fields: dict[str, Any] = {"title": clean_text(raw.get("name"))}

        start = parse_iso(raw.get("start_datetime"))
        if start:
            fields["start_date"] = start.date
            fields["start_time"] = start.time
        else:
            fields["start_date"] = clean_text(raw.get("start_date"))
            fields["start_time"] = parse_clock(raw.get("start_time"))

        fields["venue_name"] = venue.get("venue_name") or clean_text(raw.get("venue_name"))
        for key in ("venue_address", "venue_city", "venue_state", "venue_zip"):
            if venue.get(key):
                fields[key] = venue[key]

        if raw.get("event_url"):
            fields["ticket_url"] = sanitize_url(str(raw["event_url"]).split("?", 1)[0])

        image = raw.get("image_url")
        if image:
            image = str(image)
            if not image.startswith("http"):
                image = urljoin(base_url + "/", image.lstrip("/"))
            fields["image_url"] = sanitize_url(image)

        return build_event(fields, source_url)
