"""Rock House Partners (RHP Events) WordPress plugin list views."""

import re
from typing import Any, Optional
from urllib.parse import urlparse

from bs4 import Tag

from event_scraper.extractors.base import build_event, make_soup
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_clock, parse_month_day, today
from event_scraper.utils.text import clean_text, sanitize_url

YEAR_RE = re.compile(r"\b(20\d{2})\b")
DATE_RE = re.compile(r"\w+,?\s*(\w+)\s+(\d{1,2})")
DOORS_RE = re.compile(r"doors[:\s]*(\d{1,2}(?::\d{2})?\s*(?:am|pm)?)", re.I)
SHOW_RE = re.compile(r"show[:\s]*(\d{1,2}(?::\d{2})?\s*(?:am|pm)?)", re.I)
PRICE_RE = re.compile(r"\$[\d,]+(?:\.\d{2})?")

TITLE_SELECTORS = ["[class*=rhp-event__title--list]", "h2[class*=eventTitle]", "[class*=eventTitleDiv] a"]
IMAGE_SELECTORS = ["img[class*=eventListImage]", "img[class*=rhp-event__image]", "[class*=rhp-event-thumb] img"]
DETAIL_SELECTORS = ["[class*=eventMoreInfo] a", "[class*=eventTitleDiv] a", "a[class*=url]"]


def _first(node: Tag, selectors: list[str]) -> Optional[Tag]:
    for selector in selectors:
        found = node.select_one(selector)
        if found is not None:
            return found
    return None


def _text(node: Tag, selector: str) -> str:
    found = node.select_one(selector)
    return clean_text(found.get_text(" ")) if found is not None else ""


class RhpEventsExtractor:
    def identifier(self) -> str:
        return "rhp_events"

    def can_handle(self, content: str) -> bool:
        return "rhpSingleEvent" in content and "rhp-event" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        soup = make_soup(content)
        nodes = soup.select("[class*=rhpSingleEvent]")
        if not nodes:
            return []

        year = self.detect_year(soup)
        events = []
        for node in nodes:
            event = self.normalize(node, year, source_url)
            if event is not None:
                events.append(event)
        return events

    @staticmethod
    def detect_year(soup) -> int:
        for separator in soup.select("[class*=rhp-events-list-separator-month]"):
            match = YEAR_RE.search(separator.get_text())
            if match:
                return int(match.group(1))
        return today().year

    def normalize(self, node: Tag, year: int, source_url: str = "") -> Optional[NormalizedEvent]:
        title_node = _first(node, TITLE_SELECTORS)
        fields: dict[str, Any] = {"title": clean_text(title_node.get_text(" ")) if title_node else ""}

        match = DATE_RE.search(_text(node, "[class*=singleEventDate]"))
        if match:
            day = parse_month_day(f"{match.group(1)} {match.group(2)}", year=year)
            if day:
                fields["start_date"] = day.isoformat()

        time_text = _text(node, "[class*=rhp-event__time-text--list]")
        doors = DOORS_RE.search(time_text)
        if doors:
            fields["doors_time"] = parse_clock(self._with_minutes(doors.group(1)))
        show = SHOW_RE.search(time_text)
        if show:
            fields["start_time"] = parse_clock(self._with_minutes(show.group(1)))
        elif fields.get("doors_time"):
            fields["start_time"] = fields["doors_time"]

        fields["venue_name"] = _text(node, "[class*=eventTagLine]")

        price_text = _text(node, "[class*=rhp-event__cost-text--list]")
        price = PRICE_RE.search(price_text)
        fields["price"] = price.group(0) if price else price_text

        image = _first(node, IMAGE_SELECTORS)
        if image is not None and image.get("src"):
            fields["image_url"] = sanitize_url(image["src"])

        fields["ticket_url"] = self.ticket_link(node)
        fields["source_url"] = self.detail_link(node, source_url)
        fields["age_restriction"] = _text(node, "[class*=rhp-event__age-restriction]")

        return build_event(fields, source_url)

    @staticmethod
    def _with_minutes(value: str) -> str:
        value = value.strip()
        if ":" in value or re.search(r"[ap]m", value, re.I):
            return value
        return f"{value}:00"

    @staticmethod
    def ticket_link(node: Tag) -> str:
        for link in node.select("[class*=rhp-event-cta] a[href]"):
            href = link["href"]
            if "etix" in href or "ticket" in href or "Ticket" in link.get_text():
                return sanitize_url(href)
        return ""

    @staticmethod
    def detail_link(node: Tag, source_url: str) -> str:
        link = _first(node, DETAIL_SELECTORS)
        if link is None or not link.get("href"):
            return ""
        href = link["href"]
        if not href.startswith("http"):
            parsed = urlparse(source_url)
            href = f"{parsed.scheme or 'https'}://{parsed.netloc}/{href.lstrip('/')}"
        return sanitize_url(href)
