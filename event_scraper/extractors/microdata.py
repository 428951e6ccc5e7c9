"""Schema.org Event microdata extraction."""

import re
from typing import Any, Optional

from bs4 import Tag

from event_scraper.extractors.base import build_event, make_soup
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_datetime
from event_scraper.utils.text import clean_text
from event_scraper.utils.venue import format_coordinates

EVENT_ITEMTYPE_RE = re.compile(r"^https?://schema\.org/\w*Event$")
EVENT_MARKERS = [
    'itemtype="https://schema.org/Event"',
    'itemtype="http://schema.org/Event"',
    "itemtype='https://schema.org/Event'",
    "itemtype='http://schema.org/Event'",
]


def _owner(tag: Tag) -> Optional[Tag]:
    """Closest ancestor that opens an item scope."""
    parent = tag.parent
    while parent is not None and isinstance(parent, Tag):
        if parent.has_attr("itemscope") or parent.has_attr("itemtype"):
            return parent
        parent = parent.parent
    return None


def _nested_in(owner: Optional[Tag], scope: Tag) -> bool:
    """True when owner is an item scope opened inside scope."""
    if owner is None or owner is scope:
        return False
    return any(parent is scope for parent in owner.parents)


def find_prop(scope: Tag, name: str) -> Optional[Tag]:
    """First itemprop=name belonging to scope.

    Properties of nested items (a location's or performer's name) never
    stand in for the scope's own.
    """
    for candidate in scope.find_all(attrs={"itemprop": name}):
        if not _nested_in(_owner(candidate), scope):
            return candidate
    return None


def prop_value(tag: Optional[Tag], *attrs: str) -> str:
    if tag is None:
        return ""
    for attr in (*attrs, "content"):
        value = tag.get(attr)
        if value:
            return str(value).strip()
    return clean_text(tag.get_text(" "))


class MicrodataExtractor:
    """Events described with itemtype="schema.org/Event" attributes."""

    def identifier(self) -> str:
        return "microdata"

    def can_handle(self, content: str) -> bool:
        return any(marker in content for marker in EVENT_MARKERS)

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        soup = make_soup(content)
        events = []
        for element in soup.find_all(attrs={"itemtype": EVENT_ITEMTYPE_RE}):
            event = self.parse_element(element, source_url)
            if event is not None:
                events.append(event)
        return events

    def parse_element(self, element: Tag, source_url: str = "") -> Optional[NormalizedEvent]:
        fields: dict[str, Any] = {
            "title": prop_value(find_prop(element, "name")),
            "description": prop_value(find_prop(element, "description")),
        }

        start = parse_datetime(prop_value(find_prop(element, "startDate"), "datetime"))
        if start:
            fields["start_date"] = start.date
            fields["start_time"] = start.time if start.time != "00:00" else ""
        end = parse_datetime(prop_value(find_prop(element, "endDate"), "datetime"))
        if end:
            fields["end_date"] = end.date
            fields["end_time"] = end.time

        for role in ("performer", "organizer"):
            node = find_prop(element, role)
            if node is not None:
                name = find_prop(node, "name")
                fields[role] = prop_value(name) if name is not None else prop_value(node)

        location = find_prop(element, "location")
        if location is not None:
            self._parse_location(fields, location)

        offers = find_prop(element, "offers")
        if offers is not None:
            fields["price"] = prop_value(find_prop(offers, "price"))
            fields["ticket_url"] = prop_value(find_prop(offers, "url"), "href")

        image = find_prop(element, "image")
        if image is not None:
            fields["image_url"] = prop_value(image, "src", "href")

        if not fields["title"] or not fields.get("start_date"):
            return None
        return build_event(fields, source_url)

    @staticmethod
    def _parse_location(fields: dict, location: Tag) -> None:
        fields["venue_name"] = prop_value(find_prop(location, "name"))

        address = find_prop(location, "address")
        if address is not None:
            parts = {
                "venue_address": "streetAddress",
                "venue_city": "addressLocality",
                "venue_state": "addressRegion",
                "venue_zip": "postalCode",
                "venue_country": "addressCountry",
            }
            for field, prop in parts.items():
                fields[field] = prop_value(find_prop(address, prop))

        fields["venue_phone"] = prop_value(find_prop(location, "telephone"))
        fields["venue_website"] = prop_value(find_prop(location, "url"), "href")

        geo = find_prop(location, "geo")
        if geo is not None:
            fields["venue_coordinates"] = format_coordinates(
                prop_value(find_prop(geo, "latitude")),
                prop_value(find_prop(geo, "longitude")),
            )
