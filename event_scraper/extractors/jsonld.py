"""Schema.org JSON-LD Event extraction."""

import html as html_lib
import json
from typing import Any, Optional

from event_scraper.extractors.base import build_event, make_soup
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_datetime
from event_scraper.utils.text import clean_text, sanitize_url
from event_scraper.utils.venue import format_coordinates

# Event types we treat as events
EVENT_TYPES = {
    "Event",
    "MusicEvent",
    "ComedyEvent",
    "TheaterEvent",
    "DanceEvent",
    "Festival",
    "SocialEvent",
    "BusinessEvent",
    "EducationEvent",
    "ScreeningEvent",
    "LiteraryEvent",
    "SportsEvent",
    "ExhibitionEvent",
    "FoodEvent",
}


def is_event_type(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("@type", "")
    if isinstance(node_type, list):
        return any(t in EVENT_TYPES for t in node_type)
    return node_type in EVENT_TYPES


def iter_json_ld_blocks(content: str) -> list[Any]:
    """Decoded JSON-LD script blocks, skipping malformed ones."""
    soup = make_soup(content)
    blocks = []
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        if data:
            blocks.append(data)
    return blocks


def find_event_nodes(data: Any) -> list[dict]:
    """Event objects at the top level, in @graph, in ItemList elements or in lists."""
    found: list[dict] = []
    if isinstance(data, list):
        for item in data:
            found.extend(find_event_nodes(item))
        return found
    if not isinstance(data, dict):
        return found

    if is_event_type(data):
        found.append(data)
        return found

    graph = data.get("@graph")
    if isinstance(graph, list):
        found.extend(node for node in graph if is_event_type(node))

    if data.get("@type") == "ItemList":
        for element in data.get("itemListElement") or []:
            if not isinstance(element, dict):
                continue
            # ListItem wraps the actual item
            nested = element.get("item")
            if element.get("@type") == "ListItem" and is_event_type(nested):
                found.append(nested)
            elif is_event_type(element):
                found.append(element)
    return found


def _name_of(value: Any) -> str:
    if isinstance(value, list):
        value = value[0] if value else ""
    if isinstance(value, dict):
        return clean_text(value.get("name"))
    return clean_text(value)


def _url_of(value: Any) -> str:
    """First usable URL from a string, a list of them, or an object with `url`."""
    if isinstance(value, list):
        value = next((v for v in value if v), "")
    if isinstance(value, dict):
        value = value.get("url") or value.get("@id") or ""
    return sanitize_url(value) if isinstance(value, str) else ""


class JsonLdExtractor:
    """Events from <script type="application/ld+json"> blocks."""

    def identifier(self) -> str:
        return "jsonld"

    def can_handle(self, content: str) -> bool:
        return "application/ld+json" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        events = []
        for block in iter_json_ld_blocks(content):
            for node in find_event_nodes(block):
                event = self.parse_event(node, source_url)
                if event is not None:
                    events.append(event)
        return events

    def parse_event(self, data: dict, source_url: str = "") -> Optional[NormalizedEvent]:
        fields = self.event_fields(data)
        if not fields["title"] or not fields.get("start_date"):
            return None
        return build_event(fields, source_url)

    def event_fields(self, data: dict) -> dict[str, Any]:
        """Snake_case NormalizedEvent fields for one schema.org Event node."""
        fields: dict[str, Any] = {
            "title": clean_text(html_lib.unescape(str(data.get("name") or ""))),
            "description": clean_text(data.get("description")),
        }

        start = parse_datetime(data.get("startDate"))
        if start:
            fields["start_date"] = start.date
            # Midnight means the feed only knows the day
            fields["start_time"] = start.time if start.time != "00:00" else ""
            fields["venue_timezone"] = start.timezone
        end = parse_datetime(data.get("endDate"))
        if end:
            fields["end_date"] = end.date
            fields["end_time"] = end.time

        if data.get("performer"):
            fields["performer"] = _name_of(data["performer"])
        if data.get("organizer"):
            fields["organizer"] = _name_of(data["organizer"])
            organizer = data["organizer"]
            if isinstance(organizer, dict):
                fields["organizer_url"] = _url_of(organizer.get("url"))

        self._parse_location(fields, data.get("location"))
        self._parse_offers(fields, data)

        fields["image_url"] = _url_of(data.get("image"))
        return fields

    @staticmethod
    def _parse_location(fields: dict, location: Any) -> None:
        if isinstance(location, list):
            location = location[0] if location else None
        if isinstance(location, str):
            fields["venue_name"] = clean_text(location)
            return
        if not isinstance(location, dict):
            return

        fields["venue_name"] = clean_text(location.get("name"))
        address = location.get("address")
        if isinstance(address, dict):
            fields["venue_address"] = clean_text(address.get("streetAddress"))
            fields["venue_city"] = clean_text(address.get("addressLocality"))
            fields["venue_state"] = clean_text(address.get("addressRegion"))
            fields["venue_zip"] = clean_text(address.get("postalCode"))
            country = address.get("addressCountry")
            fields["venue_country"] = _name_of(country) if isinstance(country, dict) else clean_text(country)
        elif isinstance(address, str):
            fields["venue_address"] = clean_text(address)

        fields["venue_phone"] = clean_text(location.get("telephone"))
        fields["venue_website"] = _url_of(location.get("url"))

        geo = location.get("geo")
        if isinstance(geo, dict):
            fields["venue_coordinates"] = format_coordinates(geo.get("latitude"), geo.get("longitude"))

    @staticmethod
    def _parse_offers(fields: dict, data: dict) -> None:
        offers = data.get("offers") or {}
        if isinstance(offers, list):
            offers = offers[0] if offers else {}
        if not isinstance(offers, dict):
            offers = {}
        fields["price"] = clean_text(offers.get("price") or offers.get("lowPrice"))
        # Ticket URL: offers.url first, then the event's own url
        fields["ticket_url"] = _url_of(offers.get("url")) or _url_of(data.get("url"))
        availability = str(offers.get("availability") or "")
        if availability:
            fields["offer_availability"] = availability.rsplit("/", 1)[-1]
