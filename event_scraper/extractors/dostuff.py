"""DoStuff Media JSON API (Do512, Do303, ...): events grouped by day."""

from typing import Any, Optional
from urllib.parse import urlparse

from event_scraper.extractors.base import build_event, dig, load_json, looks_like_json
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_iso
from event_scraper.utils.text import clean_html_for_ai, clean_text, sanitize_url
from event_scraper.utils.venue import format_coordinates

IMAGE_KEYS = ("cover_image_h_630_w_1200", "cover_image_w_1200_h_450", "poster_w_800")


class DoStuffExtractor:
    def identifier(self) -> str:
        return "dostuff_media_api"

    def can_handle(self, content: str) -> bool:
        if not looks_like_json(content):
            return False
        data = load_json(content)
        return isinstance(data, dict) and isinstance(data.get("event_groups"), list)

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        data = load_json(content)
        if not isinstance(data, dict):
            return []

        parsed = urlparse(source_url)
        site = f"{parsed.scheme or 'https'}://{parsed.netloc}" if parsed.netloc else ""

        events = []
        for group in data.get("event_groups") or []:
            raw_events = group.get("events") if isinstance(group, dict) else None
            for raw in raw_events or []:
                if not isinstance(raw, dict):
                    continue
                event = self.normalize(raw, site, source_url)
                if event is not None:
                    events.append(event)
        return events

    def normalize(self, raw: dict, site: str = "", source_url: str = "") -> Optional[NormalizedEvent]:
        fields: dict[str, Any] = {
            "title": clean_text(raw.get("title")),
            "description": clean_text(clean_html_for_ai(str(raw.get("description") or ""))),
            "venue_country": "US",
            "ticket_url": sanitize_url(raw.get("buy_url")),
        }

        start = parse_iso(raw.get("begin_time"))
        if start:
            fields["start_date"], fields["start_time"] = start.date, start.time
        end = parse_iso(raw.get("end_time"))
        if end:
            fields["end_date"], fields["end_time"] = end.date, end.time

        venue = raw.get("venue")
        if isinstance(venue, dict):
            fields["venue_name"] = clean_text(venue.get("title"))
            fields["venue_address"] = clean_text(venue.get("address"))
            fields["venue_city"] = clean_text(venue.get("city"))
            fields["venue_state"] = clean_text(venue.get("state"))
            fields["venue_zip"] = clean_text(venue.get("zip"))
            fields["venue_coordinates"] = format_coordinates(venue.get("latitude"), venue.get("longitude"))

        for key in IMAGE_KEYS:
            image = dig(raw, "imagery", "aws", key)
            if image:
                fields["image_url"] = sanitize_url(image)
                break

        if raw.get("is_free"):
            fields["price"] = "Free"

        artists = [clean_text(a.get("title")) for a in raw.get("artists") or [] if isinstance(a, dict)]
        fields["performer"] = ", ".join(a for a in artists if a)

        if raw.get("permalink") and site:
            fields["source_url"] = site + str(raw["permalink"])

        return build_event(fields, source_url)
