"""Red Rocks Amphitheatre listing cards."""

import re
from typing import Any, Optional

from bs4 import Tag

from event_scraper.extractors.base import build_event, make_soup
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_clock, parse_month_day, today
from event_scraper.utils.text import clean_text, sanitize_url

# The site only lists shows at one venue
VENUE = {
    "venue_name": "Red Rocks Amphitheatre",
    "venue_address": "18300 W Alameda Pkwy",
    "venue_city": "Morrison",
    "venue_state": "CO",
    "venue_zip": "80465",
    "venue_country": "US",
}

DATE_RE = re.compile(r"(\w+),?\s*(\w+)\s+(\d{1,2})(?:,?\s*(\d{1,2}(?::\d{2})?\s*(?:am|pm)))?", re.I)
YEAR_RE = re.compile(r"\b(20\d{2})\b")
CATEGORIES = {"4": "Concert", "5": "Film", "6": "Fitness", "7": "Other"}


class RedRocksExtractor:
    def identifier(self) -> str:
        return "red_rocks"

    def can_handle(self, content: str) -> bool:
        return "redrocksonline.com" in content and "card-event" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        soup = make_soup(content)
        cards = soup.find_all(class_="card-event")
        if not cards:
            return []

        year = self._detect_year(soup)
        events = []
        for card in cards:
            event = self.normalize(card, year, source_url)
            if event is not None:
                events.append(event)
        return events

    @staticmethod
    def _detect_year(soup) -> int:
        headers = soup.find_all(class_=re.compile(r"month-header")) + soup.find_all("h2", class_=re.compile(r"month"))
        for header in headers:
            match = YEAR_RE.search(header.get_text())
            if match:
                return int(match.group(1))
        return today().year

    def normalize(self, card: Tag, year: int, source_url: str = "") -> Optional[NormalizedEvent]:
        title = card.find(class_=re.compile(r"card-title"))
        fields: dict[str, Any] = {
            "title": clean_text(title.get_text(" ")) if title else "",
            "description": self._description(card),
            **VENUE,
        }

        date_node = card.find(class_=re.compile(r"date"))
        if date_node is not None:
            match = DATE_RE.search(clean_text(date_node.get_text(" ")))
            if match:
                _, month, day, clock = match.groups()
                start = parse_month_day(f"{month} {day}", year=year)
                if start is not None:
                    fields["start_date"] = start.isoformat()
                fields["start_time"] = parse_clock(clock)

        fields["image_url"] = self._image(card)
        fields["ticket_url"] = self._ticket_url(card)
        fields["event_type"] = CATEGORIES.get(str(card.get("data-category", "")), "")
        return build_event(fields, source_url)

    @staticmethod
    def _description(card: Tag) -> str:
        candidates = []
        hide_mobile = card.find(class_=re.compile(r"hide-mobile"))
        if hide_mobile is not None:
            candidates.append(hide_mobile.find("p"))
        candidates.append(card.find(class_=re.compile(r"card-text")))
        candidates.append(card.find("p", class_=re.compile(r"supporting")))
        for node in candidates:
            if node is not None:
                text = clean_text(node.get_text(" "))
                if text:
                    return text
        return ""

    @staticmethod
    def _image(card: Tag) -> str:
        img = card.find("img", attrs={"data-image": True})
        if img is not None and img.get("data-image"):
            return sanitize_url(img["data-image"])
        img = card.find("img", src=True)
        if img is not None and not img["src"].startswith("data:"):
            return sanitize_url(img["src"])
        return ""

    @staticmethod
    def _ticket_url(card: Tag) -> str:
        candidates = [
            card.find("a", class_=re.compile(r"btn-white")),
            card.find("a", href=re.compile(r"axs\.com")),
            card.find("a", href=re.compile(r"ticket")),
            card.find("a", string=re.compile(r"Ticket")),
        ]
        for link in candidates:
            if link is not None and link.get("href") and link["href"] != "#":
                return sanitize_url(link["href"])
        return ""
