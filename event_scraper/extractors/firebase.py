"""Sites backed by a Firebase Realtime Database `events` node."""

import re
from typing import Any, Optional

from event_scraper.extractors.base import build_event, load_json
from event_scraper.fetch import HttpClient, fetch_text
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_iso
from event_scraper.utils.text import clean_text, sanitize_url

DATABASE_URL_RE = re.compile(r"""databaseURL\s*:\s*["']([^"']+firebaseio\.com)["']""")
# "Wed Sep 11 2024 18:30:00 GMT-0500 (Central Daylight Time)"
ZONE_NAME_SUFFIX_RE = re.compile(r"\s*\([^)]+\)\s*$")
GMT_OFFSET_RE = re.compile(r"\s*GMT[+-]\d{4}\s*$")


def parse_js_date(value: str) -> tuple[str, str]:
    """(date, time) of a JavaScript Date.toString() value, in its own wall clock."""
    value = ZONE_NAME_SUFFIX_RE.sub("", value.strip())
    value = GMT_OFFSET_RE.sub("", value)
    parsed = parse_iso(value)
    return parsed.date, parsed.time


class FirebaseExtractor:
    def __init__(self, client: HttpClient):
        self.client = client

    def identifier(self) -> str:
        return "firebase"

    def can_handle(self, content: str) -> bool:
        has_sdk = "firebase-database.js" in content or "firebase-app.js" in content
        has_db = "databaseURL" in content and "firebaseio.com" in content
        return has_sdk and has_db

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        match = DATABASE_URL_RE.search(content)
        if not match:
            return []

        events_url = match.group(1).rstrip("/") + "/events.json"
        data = load_json(fetch_text(self.client, events_url, headers={"Accept": "application/json"}))
        if not isinstance(data, dict):
            return []

        events = []
        for record in data.values():
            metadata = record.get("metadata") if isinstance(record, dict) else None
            if not isinstance(metadata, dict) or not metadata.get("isPublished"):
                continue
            event = self.normalize(metadata, source_url)
            if event is not None:
                events.append(event)
        return events

    def normalize(self, metadata: dict, source_url: str = "") -> Optional[NormalizedEvent]:
        fields: dict[str, Any] = {
            "title": clean_text(metadata.get("title")),
            "description": clean_text(metadata.get("longDescription")),
            "ticket_url": sanitize_url(metadata.get("ticketLink")),
            "image_url": sanitize_url(metadata.get("posterUrl")),
            "price": clean_text(metadata.get("door")),
        }
        if metadata.get("date"):
            fields["start_date"], fields["start_time"] = parse_js_date(str(metadata["date"]))
        return build_event(fields, source_url)
