"""Squarespace event collections.

Squarespace serves every collection page as JSON when asked with
?format=json; the same context is also inlined as Static.SQUARESPACE_CONTEXT.
"""

import re
from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from rich.console import Console

from event_scraper.extractors.base import build_event, decode_object_at, dig, load_json, make_soup
from event_scraper.fetch import HttpClient, fetch_text
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import from_timestamp, parse_datetime, parse_month_day
from event_scraper.utils.text import clean_text, sanitize_url
from event_scraper.utils.venue import PageVenueExtractor

console = Console()

CONTEXT_RE = re.compile(r"Static\.SQUARESPACE_CONTEXT\s*=\s*(?=\{)")
TEXT_DATE_RE = re.compile(
    r"\b(January|February|March|April|May|June|July|August|September|October|November|December|"
    r"Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+(\d{1,2})(?:st|nd|rd|th)?(?:,?\s+(\d{4}))?",
    re.I,
)
# Millisecond epochs are 13 digits for any date after 2001
MS_EPOCH_THRESHOLD = 1_000_000_000_000


def with_format_json(url: str) -> str:
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query))
    query["format"] = "json"
    return urlunparse(parsed._replace(query=urlencode(query)))


def find_items(data: Any) -> list:
    """Locate the event item list anywhere in a Squarespace context."""
    if not isinstance(data, (dict, list)):
        return []
    for key in ("userItems", "items"):
        items = dig(data, "collection", key)
        if isinstance(items, list) and items:
            return items

    children = data.items() if isinstance(data, dict) else enumerate(data)
    for key, value in children:
        if not isinstance(value, (dict, list)):
            continue
        if (
            key in ("items", "userItems")
            and isinstance(value, list)
            and value
            and isinstance(value[0], dict)
            and "title" in value[0]
        ):
            return value
        found = find_items(value)
        if found:
            return found
    return []


def find_block_items(data: dict) -> list:
    upcoming = dig(data, "website", "upcomingEvents")
    if isinstance(upcoming, list):
        return upcoming
    for block in data.get("blocks") or []:
        if isinstance(block, dict) and isinstance(block.get("items"), list):
            return block["items"]
    return []


def parse_article_items(content: str) -> list[dict]:
    """Items from the rendered eventlist markup."""
    items = []
    for article in make_soup(content).select("article.eventlist-event"):
        link = article.select_one(".eventlist-title a[href]")
        if link is None:
            continue
        title = clean_text(link.get_text())
        if not title:
            continue
        item = {"title": title, "fullUrl": link["href"]}
        time_tag = article.find("time", attrs={"datetime": True})
        if time_tag is not None:
            item["startDate"] = time_tag["datetime"]
        image = article.find("img", attrs={"data-src": True})
        if image is not None:
            item["assetUrl"] = image["data-src"]
        items.append(item)
    return items


class SquarespaceExtractor:
    def __init__(self, client: HttpClient, venue_extractor: Optional[PageVenueExtractor] = None):
        self.client = client
        self.venue_extractor = venue_extractor or PageVenueExtractor()

    def identifier(self) -> str:
        return "squarespace"

    def can_handle(self, content: str) -> bool:
        return "Static.SQUARESPACE_CONTEXT" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        data = self.load_context(content, source_url)
        if not data:
            return []

        items = find_items(data) or parse_article_items(content) or find_block_items(data)
        if not items:
            return []

        page_venue = self.venue_extractor.extract(content)
        if not page_venue.get("venue_timezone"):
            page_venue["venue_timezone"] = clean_text(dig(data, "website", "timeZone"))

        events = []
        for item in items:
            if not isinstance(item, dict):
                continue
            event = self.normalize(item, page_venue, source_url)
            if event is not None:
                events.append(event)
        return events

    def load_context(self, content: str, source_url: str) -> dict:
        data = load_json(fetch_text(self.client, with_format_json(source_url)))
        if isinstance(data, dict) and data:
            return data
        console.print(f"[dim]Squarespace JSON view unavailable for {source_url}, using inline context[/dim]")
        data = decode_object_at(content, CONTEXT_RE)
        return data if isinstance(data, dict) else {}

    def normalize(self, item: dict, page_venue: dict, source_url: str = "") -> Optional[NormalizedEvent]:
        timezone = page_venue.get("venue_timezone", "")
        fields: dict[str, Any] = {
            "title": clean_text(item.get("title")),
            "description": clean_text(item.get("description") or item.get("body")),
            "venue_country": "US",
        }
        fields.update({k: v for k, v in page_venue.items() if v})

        start = self.parse_when(item.get("startDate") or item.get("publishOn"), timezone)
        if start:
            fields["start_date"], fields["start_time"] = start.date, start.time
        else:
            fields["start_date"] = self.date_from_text(fields["description"])
        end = self.parse_when(item.get("endDate"), timezone)
        if end:
            fields["end_date"], fields["end_time"] = end.date, end.time

        fields["ticket_url"] = sanitize_url(dig(item, "button", "buttonLink") or item.get("clickthroughUrl"))
        fields["image_url"] = sanitize_url(item.get("assetUrl") or dig(item, "image", "assetUrl"))
        if item.get("fullUrl"):
            fields["source_url"] = self.item_url(item["fullUrl"], source_url)

        return build_event(fields, source_url)

    @staticmethod
    def parse_when(value: Any, timezone: str):
        if value in (None, ""):
            return None
        if isinstance(value, (int, float)) or str(value).isdigit():
            number = float(value)
            return from_timestamp(number, timezone, milliseconds=number > MS_EPOCH_THRESHOLD) or None
        return parse_datetime(str(value), timezone) or None

    @staticmethod
    def date_from_text(text: str) -> str:
        match = TEXT_DATE_RE.search(text or "")
        if not match:
            return ""
        day = parse_month_day(match.group(0), grace_days=0)
        return day.isoformat() if day else ""

    @staticmethod
    def item_url(full_url: str, source_url: str) -> str:
        if full_url.startswith("/"):
            parsed = urlparse(source_url)
            return f"{parsed.scheme}://{parsed.netloc}{full_url}"
        return sanitize_url(full_url)
