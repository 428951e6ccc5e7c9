"""Crawl orchestrator: one pull returns at most one new event from a source.

Per page:
1. Fetch (browser mode, then plain mode)
2. Offer the content to the extractor registry; each non-empty result goes
   through the processor until one yields an eligible event
3. When no extractor recognized the page, fall back to the section finder
4. Otherwise follow the paginator to the next page, up to the page cap

Visited URLs are tracked by hash so pagination loops end the crawl.
"""

import hashlib
import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence
from urllib.parse import urlparse

from rich.console import Console

from event_scraper.config import ScraperConfig
from event_scraper.extractors.base import load_json
from event_scraper.extractors.registry import ExtractorRegistry
from event_scraper.fetch import HttpClient, fetch_page
from event_scraper.models import EventPacket, import_timestamp
from event_scraper.paginators import Paginator, default_paginators, find_next_page_url
from event_scraper.processing.filters import exclude_match, include_match, should_skip_title
from event_scraper.processing.ledger import ProcessedLedger
from event_scraper.processing.processor import IMPORT_SOURCE, StructuredDataProcessor, VenueResolver
from event_scraper.sections.finder import EventSection, EventSectionFinder, section_title
from event_scraper.utils.dates import is_past_date
from event_scraper.utils.text import clean_html_for_ai, clean_text, truncate_section

console = Console()

DIRECT_URL_RE = re.compile(r"\.ics($|\?)|wp-json/tribe/events", re.I)
WP_API_ENDPOINTS = [
    "/wp-json/tribe/events/v1/events?per_page=100",
    "/wp-json/wp/v2/events?per_page=100",
]
API_DISCOVERY_TIMEOUT = 10.0
MIN_SECTION_LENGTH = 50


def url_hash(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()


@dataclass
class CrawlState:
    """Lives for one pull only."""

    url: str
    page: int = 1
    visited: set[str] = field(default_factory=set)

    def visit(self) -> bool:
        """Record the current URL; False when it was already visited."""
        key = url_hash(self.url)
        if key in self.visited:
            return False
        self.visited.add(key)
        return True

    def advance(self, next_url: str) -> None:
        self.url = next_url
        self.page += 1


class UniversalScraper:
    def __init__(
        self,
        client: HttpClient,
        ledger: ProcessedLedger,
        registry: Optional[ExtractorRegistry] = None,
        paginators: Optional[Sequence[Paginator]] = None,
        venue_resolver: Optional[VenueResolver] = None,
        is_past: Callable[[str], bool] = is_past_date,
    ):
        self.client = client
        self.ledger = ledger
        self.registry = registry or ExtractorRegistry.default(client)
        self.paginators = list(paginators) if paginators is not None else default_paginators()
        self.processor = StructuredDataProcessor(ledger, venue_resolver, is_past)
        self.is_past = is_past

    def get_next_event(
        self,
        config: ScraperConfig,
        flow_context: str,
        job_id: Optional[str] = None,
    ) -> Optional[EventPacket]:
        """Return the next unprocessed eligible event for this source, or None.

        Raises ScraperConfigError when no source URL is configured.
        """
        url = config.require_source_url()
        if url.lower().startswith("webcal://"):
            url = "https://" + url[len("webcal://"):]
        console.print(f"[dim]Scraping {url} (flow: {flow_context})[/dim]")

        if DIRECT_URL_RE.search(url):
            content = fetch_page(self.client, url, config.timeout)
            if content:
                packet, _ = self._try_extractors(content, url, config, flow_context, job_id)
                if packet is not None:
                    return packet

        state = CrawlState(url)
        while state.page <= config.max_pages:
            if not state.visit():
                console.print(f"[dim]Already visited {state.url}, ending pagination[/dim]")
                break

            content = fetch_page(self.client, state.url, config.timeout)
            if not content:
                if state.page == 1:
                    return self._try_api_discovery(state.url, config, flow_context, job_id)
                break

            packet, matched = self._try_extractors(content, state.url, config, flow_context, job_id)
            if packet is not None:
                return packet

            if not matched:
                packet = self._try_sections(content, state.url, config, flow_context, job_id)
                if packet is not None:
                    return packet

            next_url = find_next_page_url(self.paginators, state.url, content)
            if not next_url:
                console.print(f"[dim]No more pages after page {state.page}[/dim]")
                break
            state.advance(next_url)
            console.print(f"[dim]Moving to page {state.page}: {next_url}[/dim]")
        else:
            console.print(f"[yellow]Page cap of {config.max_pages} reached for {url}[/yellow]")

        return None

    def _try_extractors(
        self,
        content: str,
        url: str,
        config: ScraperConfig,
        flow_context: str,
        job_id: Optional[str],
    ) -> tuple[Optional[EventPacket], bool]:
        """(packet, whether any extractor produced events)."""
        matched = False
        for result in self.registry.iter_results(content, url):
            matched = True
            packet = self.processor.process(result.events, result.method, config, flow_context, job_id)
            if packet is not None:
                console.print(f"[green]✓ {packet.title}[/green] [dim]via {result.method}[/dim]")
                return packet, True
        return None, matched

    def _try_sections(
        self,
        content: str,
        url: str,
        config: ScraperConfig,
        flow_context: str,
        job_id: Optional[str],
    ) -> Optional[EventPacket]:
        skipped: set[str] = set()
        finder = EventSectionFinder(
            is_processed=lambda ident: ident in skipped or self.ledger.is_processed(ident, flow_context),
            is_past=self.is_past,
        )

        while True:
            section = finder.find_first_eligible_section(content, url)
            if section is None:
                return None

            markup = clean_html_for_ai(section.html)
            if len(markup) < MIN_SECTION_LENGTH:
                skipped.add(section.identifier)
                continue
            markup = truncate_section(markup)

            title = section_title(markup)
            if title and should_skip_title(title, config.skip_title_keywords):
                skipped.add(section.identifier)
                continue

            search_text = clean_text(markup)
            if not include_match(search_text, config.search) or exclude_match(search_text, config.exclude_keywords):
                skipped.add(section.identifier)
                continue

            self.ledger.mark_processed(section.identifier, flow_context, job_id)
            console.print(f"[green]✓ HTML section[/green] [dim]{section.selector} on {url}[/dim]")
            return self.package_section(section, markup)

    @staticmethod
    def package_section(section: EventSection, markup: str) -> EventPacket:
        return EventPacket(
            title="Raw HTML Event Section",
            body={
                "raw_html": markup,
                "source_url": section.url,
                "import_source": IMPORT_SOURCE,
                "section_identifier": section.identifier,
            },
            metadata={
                "source_type": IMPORT_SOURCE,
                "extraction_method": "html_section",
                "original_title": f"HTML Section from {urlparse(section.url).hostname or ''}",
                "event_identifier": section.identifier,
                "import_timestamp": import_timestamp(),
            },
        )

    def discover_wordpress_api(self, url: str) -> Optional[str]:
        """Probe the well-known WordPress event endpoints of url's site."""
        parsed = urlparse(url)
        if not parsed.hostname:
            return None
        base_url = f"{parsed.scheme or 'https'}://{parsed.netloc}"
        for path in WP_API_ENDPOINTS:
            endpoint = base_url + path
            result = self.client.get(endpoint, timeout=API_DISCOVERY_TIMEOUT, browser_mode=True)
            if not result.success or not result.body:
                continue
            data = load_json(result.body)
            if isinstance(data, dict) and "events" in data:
                return endpoint
            if isinstance(data, list) and data and isinstance(data[0], dict) and "id" in data[0]:
                return endpoint
        return None

    def _try_api_discovery(
        self,
        url: str,
        config: ScraperConfig,
        flow_context: str,
        job_id: Optional[str],
    ) -> Optional[EventPacket]:
        api_url = self.discover_wordpress_api(url)
        if not api_url:
            return None
        console.print(f"[yellow]Page fetch failed, using discovered API {api_url}[/yellow]")
        content = fetch_page(self.client, api_url, config.timeout)
        if not content:
            return None
        packet, _ = self._try_extractors(content, api_url, config, flow_context, job_id)
        return packet
