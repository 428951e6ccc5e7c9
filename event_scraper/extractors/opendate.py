"""OpenDate embeds: listing cards that link to per-event detail pages.

The listing only carries links, so each detail page is fetched and read from
its JSON-LD Event, with the React calendar widget's props taking precedence
for times.
"""

import re
from typing import Any, Optional

from rich.console import Console

from event_scraper.extractors.base import build_event, dig, load_json, make_soup
from event_scraper.extractors.jsonld import JsonLdExtractor, iter_json_ld_blocks
from event_scraper.fetch import HttpClient, fetch_text
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_iso
from event_scraper.utils.text import clean_text

console = Console()

OPENDATE_BASE = "https://app.opendate.io"
STATIC_MAP_RE = re.compile(r"maps\.googleapis\.com/maps/api/staticmap\?center=([0-9.-]+),([0-9.-]+)")
DETAIL_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def listing_urls(content: str) -> list[str]:
    urls = []
    for link in make_soup(content).select("[class*=confirm-card] a[class*=stretched-link]"):
        href = (link.get("href") or "").strip()
        if not href:
            continue
        if not href.startswith("http"):
            href = OPENDATE_BASE + href
        urls.append(href)
    return urls


def event_json_ld(content: str) -> Optional[dict]:
    for block in iter_json_ld_blocks(content):
        if isinstance(block, dict) and block.get("@type") == "Event":
            return block
    return None


def calendar_props(content: str) -> dict:
    """The `confirm` props of the AddConfirmToCalendar React component."""
    soup = make_soup(content)
    for script in soup.find_all("script", class_="js-react-on-rails-component"):
        if script.get("data-component-name") != "AddConfirmToCalendar":
            continue
        confirm = dig(load_json(script.string or ""), "confirm")
        if isinstance(confirm, dict):
            return confirm
    return {}


def static_map_coordinates(content: str) -> str:
    match = STATIC_MAP_RE.search(content)
    return f"{match.group(1)},{match.group(2)}" if match else ""


def performer_names(performer: Any) -> str:
    if isinstance(performer, dict):
        return clean_text(performer.get("name"))
    if isinstance(performer, list):
        names = [clean_text(p.get("name")) for p in performer if isinstance(p, dict)]
        return ", ".join(n for n in names if n)
    return clean_text(performer)


class OpenDateExtractor:
    def __init__(self, client: HttpClient):
        self.client = client
        self.jsonld = JsonLdExtractor()

    def identifier(self) -> str:
        return "opendate"

    def can_handle(self, content: str) -> bool:
        return "confirm-card" in content or "ODEmbed" in content

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        events = []
        for event_url in listing_urls(content):
            detail = fetch_text(self.client, event_url, headers=DETAIL_HEADERS)
            if not detail:
                console.print(f"[dim]OpenDate detail page unavailable: {event_url}[/dim]")
                continue
            event = self.parse_detail(detail, event_url)
            if event is not None:
                events.append(event)
        return events

    def parse_detail(self, detail: str, event_url: str) -> Optional[NormalizedEvent]:
        data = event_json_ld(detail)
        if data is None:
            return None

        fields = self.jsonld.event_fields(data)
        props = calendar_props(detail)

        start = parse_iso(props.get("start_time"))
        if start:
            fields["start_date"], fields["start_time"] = start.date, start.time
        end = parse_iso(props.get("end_time_for_calendar"))
        if end:
            fields["end_date"], fields["end_time"] = end.date, end.time
        elif fields.get("end_time") == "00:00":
            fields["end_time"] = ""

        if not fields.get("venue_coordinates"):
            fields["venue_coordinates"] = static_map_coordinates(detail)
        if data.get("performer"):
            fields["performer"] = performer_names(data["performer"])

        offers = data.get("offers")
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        fields["ticket_url"] = (offers.get("url") if isinstance(offers, dict) else "") or event_url

        return build_event(fields, event_url)
