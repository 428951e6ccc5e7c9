"""Priority-ordered extractor chain."""

from typing import Iterator, Optional, Sequence

from rich.console import Console

from event_scraper.extractors.aeg_axs import AegAxsExtractor
from event_scraper.extractors.base import FormatExtractor
from event_scraper.extractors.dostuff import DoStuffExtractor
from event_scraper.extractors.embedded_calendar import EmbeddedCalendarExtractor
from event_scraper.extractors.firebase import FirebaseExtractor
from event_scraper.extractors.freshtix import FreshtixExtractor
from event_scraper.extractors.ics import IcsExtractor
from event_scraper.extractors.jsonld import JsonLdExtractor
from event_scraper.extractors.microdata import MicrodataExtractor
from event_scraper.extractors.music_item import MusicItemExtractor
from event_scraper.extractors.opendate import OpenDateExtractor
from event_scraper.extractors.red_rocks import RedRocksExtractor
from event_scraper.extractors.rhp_events import RhpEventsExtractor
from event_scraper.extractors.squarespace import SquarespaceExtractor
from event_scraper.extractors.wix import WixEventsExtractor
from event_scraper.extractors.wordpress import WordPressExtractor
from event_scraper.fetch import HttpClient
from event_scraper.models import ExtractionResult

console = Console()


def default_extractors(client: HttpClient) -> list[FormatExtractor]:
    """The fixed production order: platform feeds first, generic markup last."""
    return [
        AegAxsExtractor(client),
        RedRocksExtractor(),
        FreshtixExtractor(),
        FirebaseExtractor(client),
        EmbeddedCalendarExtractor(client),
        SquarespaceExtractor(client),
        JsonLdExtractor(),
        WordPressExtractor(client),
        WixEventsExtractor(),
        RhpEventsExtractor(),
        OpenDateExtractor(client),
        MicrodataExtractor(),
        DoStuffExtractor(),
        MusicItemExtractor(),
        IcsExtractor(),
    ]


class ExtractorRegistry:
    """Offers content to each extractor in order.

    An extractor that claims the content but yields nothing, or raises,
    is skipped in favor of the next one.
    """

    def __init__(self, extractors: Sequence[FormatExtractor]):
        self.extractors = list(extractors)

    @classmethod
    def default(cls, client: HttpClient) -> "ExtractorRegistry":
        return cls(default_extractors(client))

    def identifiers(self) -> list[str]:
        return [e.identifier() for e in self.extractors]

    def get(self, identifier: str) -> Optional[FormatExtractor]:
        for extractor in self.extractors:
            if extractor.identifier() == identifier:
                return extractor
        return None

    def iter_results(self, content: str, source_url: str) -> Iterator[ExtractionResult]:
        """Yield one non-empty result per matching extractor, in priority order."""
        for extractor in self.extractors:
            result = self.run(extractor, content, source_url)
            if result is not None:
                yield result

    def first_match(self, content: str, source_url: str) -> Optional[ExtractionResult]:
        return next(self.iter_results(content, source_url), None)

    @staticmethod
    def run(extractor: FormatExtractor, content: str, source_url: str) -> Optional[ExtractionResult]:
        method = extractor.identifier()
        if not extractor.can_handle(content):
            return None
        try:
            events = extractor.extract(content, source_url)
        except Exception as e:
            console.print(f"[dim]Extractor {method} failed on {source_url}: {type(e).__name__}: {e}[/dim]")
            return None
        if not events:
            console.print(f"[dim]Extractor {method} matched {source_url} but found no events[/dim]")
            return None
        console.print(f"[dim]Extractor {method} found {len(events)} events on {source_url}[/dim]")
        return ExtractionResult(method=method, events=events)
