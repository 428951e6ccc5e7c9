"""Google Calendar embeds resolved to their public ICS feed."""

import base64
import binascii
import html as html_lib
import re
from typing import Optional
from urllib.parse import parse_qs, quote, urlparse

from rich.console import Console

from event_scraper.extractors.ics import parse_ics_calendar
from event_scraper.fetch import HttpClient
from event_scraper.models import NormalizedEvent
from event_scraper.utils.venue import PageVenueExtractor

console = Console()

IFRAME_RE = re.compile(r"""<iframe[^>]+src=["']([^"']*google\.com/calendar/embed[^"']*)["'][^>]*>""", re.I)
BASE64_RE = re.compile(r"^[a-zA-Z0-9/+]+={0,2}$")
ICS_URL_TEMPLATE = "https://calendar.google.com/calendar/ical/{calendar_id}/public/basic.ics"

PAGE_VENUE_FIELDS = [
    "venue_name",
    "venue_address",
    "venue_city",
    "venue_state",
    "venue_zip",
    "venue_country",
]


def parse_embed(content: str) -> tuple[str, str]:
    """(calendar_id, timezone) from the first Google Calendar iframe."""
    match = IFRAME_RE.search(content)
    if not match:
        return "", ""
    query = parse_qs(urlparse(html_lib.unescape(match.group(1))).query)
    calendar_id = (query.get("src") or [""])[0]
    timezone = (query.get("ctz") or [""])[0]

    # Some embeds carry the calendar id base64-encoded
    if calendar_id and "@" not in calendar_id and BASE64_RE.match(calendar_id):
        try:
            decoded = base64.b64decode(calendar_id, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            decoded = ""
        if "@" in decoded or "calendar.google.com" in decoded:
            calendar_id = decoded
    return calendar_id, timezone


def ics_url_for(calendar_id: str) -> str:
    return ICS_URL_TEMPLATE.format(calendar_id=quote(calendar_id, safe=""))


class EmbeddedCalendarExtractor:
    """Events from an embedded Google Calendar, read via its public ICS feed."""

    def __init__(self, client: HttpClient, venue_extractor: Optional[PageVenueExtractor] = None):
        self.client = client
        self.venue_extractor = venue_extractor or PageVenueExtractor()

    def identifier(self) -> str:
        return "embedded_calendar"

    def can_handle(self, content: str) -> bool:
        return "google.com/calendar/embed" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        calendar_id, embed_tz = parse_embed(content)
        if not calendar_id:
            return []

        ics_content = self._fetch_ics(ics_url_for(calendar_id))
        if not ics_content:
            return []

        page_venue = self.venue_extractor.extract(content)
        default_tz = embed_tz or page_venue.get("venue_timezone", "")
        events = parse_ics_calendar(ics_content, source_url, default_timezone=default_tz)

        enriched = []
        for event in events:
            update = {}
            if not event.venue_name:
                update = {field: page_venue.get(field, "") for field in PAGE_VENUE_FIELDS}
            if not (update.get("venue_country") or event.venue_country):
                update["venue_country"] = "US"
            enriched.append(event.model_copy(update=update) if update else event)
        return enriched

    def _fetch_ics(self, url: str) -> str:
        headers = {"Accept": "text/calendar, text/plain"}
        result = self.client.get(url, headers=headers, browser_mode=True)
        if not result.success or result.status_code != 200:
            result = self.client.get(url, headers=headers, browser_mode=False)
        if not result.success or result.status_code != 200:
            console.print(f"[dim]No public ICS feed at {url}[/dim]")
            return ""
        return result.body
