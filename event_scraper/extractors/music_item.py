"""Venue sites built on the `music__item` list template."""

import re
from typing import Any, Optional
from urllib.parse import urlparse

from bs4 import NavigableString, Tag

from event_scraper.extractors.base import build_event, make_soup
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_month_day, today
from event_scraper.utils.text import clean_text, sanitize_url
from event_scraper.utils.venue import PageVenueExtractor

DATE_RE = re.compile(r"(\w+),?\s+(\w+)\s+(\d{1,2})")
TIME_RANGE_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*-\s*(\d{1,2})(?::(\d{2}))?")
IMAGE_SELECTORS = ["[class*=music__image] img[src]", "[class*=music__video] img[src]", "img[src]"]

# Page venue fields copied onto events that lack them
MERGED_FIELDS = ("venue_name", "venue_address", "venue_city", "venue_state", "venue_zip", "venue_country")


def _evening(hour: int) -> int:
    # Listings print "8-11" for 8pm to 11pm
    return hour + 12 if 1 <= hour < 12 else hour


def resolve_url(url: str, source_url: str) -> str:
    if url.startswith("http"):
        return sanitize_url(url)
    parsed = urlparse(source_url)
    return sanitize_url(f"{parsed.scheme or 'https'}://{parsed.netloc}/{url.lstrip('/')}")


class MusicItemExtractor:
    def __init__(self, venue_extractor: Optional[PageVenueExtractor] = None):
        self.venue_extractor = venue_extractor or PageVenueExtractor()

    def identifier(self) -> str:
        return "music_item"

    def can_handle(self, content: str) -> bool:
        return "music__item" in content and "music__artist" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        nodes = make_soup(content).find_all(class_="music__item")
        if not nodes:
            return []

        page_venue = self.venue_extractor.extract(content)
        year = today().year
        events = []
        for node in nodes:
            fields = self.parse_item(node, year, source_url)
            if not fields.get("title"):
                continue
            for key in MERGED_FIELDS:
                if not fields.get(key) and page_venue.get(key):
                    fields[key] = page_venue[key]
            event = build_event(fields, source_url)
            if event is not None:
                events.append(event)
        return events

    def parse_item(self, node: Tag, year: int, source_url: str) -> dict[str, Any]:
        artist = node.select_one("[class*=music__artist]")
        description = node.select_one("[class*=music__description]")
        fields: dict[str, Any] = {
            "title": clean_text(artist.get_text(" ")) if artist else "",
            "description": clean_text(description.get_text(" ")) if description else "",
        }

        date_node = node.select_one("[class*=music__date]")
        if date_node is not None:
            day = self.parse_date(date_node, year)
            if day:
                fields["start_date"] = day

        time_node = node.select_one("[class*=music__time]")
        if time_node is not None:
            match = TIME_RANGE_RE.search(time_node.get_text())
            if match:
                fields["start_time"] = f"{_evening(int(match.group(1))):02d}:{match.group(2) or '00'}"
                fields["end_time"] = f"{_evening(int(match.group(3))):02d}:{match.group(4) or '00'}"

        for selector in IMAGE_SELECTORS:
            image = node.select_one(selector)
            if image is not None:
                fields["image_url"] = resolve_url(image["src"], source_url)
                break

        return fields

    @staticmethod
    def parse_date(date_node: Tag, year: int) -> str:
        # The date's own text nodes, without the nested time range
        text = "".join(c for c in date_node.children if isinstance(c, NavigableString)).strip()
        if not text:
            text = re.sub(r"\d{1,2}\s*-\s*\d{1,2}", "", date_node.get_text()).strip()
        match = DATE_RE.search(text)
        if not match:
            return ""
        day = parse_month_day(f"{match.group(2)} {match.group(3)}", year=year)
        return day.isoformat() if day else ""
