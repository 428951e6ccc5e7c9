"""Turns extracted candidates into at most one emitted EventPacket."""

from typing import Callable, Iterable, Optional, Protocol

from rich.console import Console

from event_scraper.config import ScraperConfig
from event_scraper.models import EventPacket, NormalizedEvent, import_timestamp
from event_scraper.processing.filters import exclude_match, include_match, should_skip_title
from event_scraper.processing.identity import event_identity
from event_scraper.processing.ledger import ProcessedLedger
from event_scraper.utils.dates import is_past_date
from event_scraper.utils.text import clean_text, sanitize_url

console = Console()

IMPORT_SOURCE = "universal_web_scraper"

# Venue details split out of the event record into venue_metadata
VENUE_METADATA_FIELDS = (
    "venue_address",
    "venue_city",
    "venue_state",
    "venue_zip",
    "venue_country",
    "venue_phone",
    "venue_website",
    "venue_coordinates",
)

# Resolver keys → event fields
RESOLVED_VENUE_FIELDS = {
    "address": "venue_address",
    "city": "venue_city",
    "state": "venue_state",
    "zip": "venue_zip",
    "country": "venue_country",
    "phone": "venue_phone",
    "website": "venue_website",
    "coordinates": "venue_coordinates",
}


class VenueResolver(Protocol):
    def resolve_venue_by_id(self, venue_id: str) -> Optional[dict]:
        """Venue data with a `name` plus any of address, city, state, zip,
        country, phone, website, coordinates; None for unknown ids."""
        ...


def venue_override(event: NormalizedEvent, config: ScraperConfig, resolver: Optional[VenueResolver]) -> NormalizedEvent:
    """Apply the configured venue (by id, else by literal fields) over extracted values."""
    if config.venue and str(config.venue).strip().isdigit():
        data = resolver.resolve_venue_by_id(str(config.venue).strip()) if resolver else None
        if not data:
            console.print(f"[yellow]Venue {config.venue} could not be resolved, keeping extracted venue[/yellow]")
            return event
        update = {"venue_name": clean_text(data.get("name"))} if data.get("name") else {}
        for key, field in RESOLVED_VENUE_FIELDS.items():
            if data.get(key):
                update[field] = str(data[key])
        return event.model_copy(update=update)

    if config.venue_name:
        update = {"venue_name": clean_text(config.venue_name)}
        for field in VENUE_METADATA_FIELDS:
            value = getattr(config, field, "")
            if not value:
                continue
            update[field] = sanitize_url(value) if field == "venue_website" else clean_text(value)
        return event.model_copy(update=update)

    return event


def split_venue_metadata(event: NormalizedEvent) -> tuple[dict, dict]:
    """(event record without venue details, venue detail record)."""
    record = event.to_record()
    metadata_keys = {NormalizedEvent.model_fields[f].alias for f in VENUE_METADATA_FIELDS}
    venue_metadata = {k: v for k, v in record.items() if k in metadata_keys}
    stripped = {k: v for k, v in record.items() if k not in metadata_keys}
    return stripped, venue_metadata


class StructuredDataProcessor:
    """Filters, dedups and packages extractor output.

    Candidates are checked in order; the first that survives every filter is
    marked processed and returned, and the rest are left for later calls.
    """

    def __init__(
        self,
        ledger: ProcessedLedger,
        venue_resolver: Optional[VenueResolver] = None,
        is_past: Callable[[str], bool] = is_past_date,
    ):
        self.ledger = ledger
        self.venue_resolver = venue_resolver
        self.is_past = is_past

    def process(
        self,
        events: Iterable[NormalizedEvent],
        method: str,
        config: ScraperConfig,
        flow_context: str,
        job_id: Optional[str] = None,
    ) -> Optional[EventPacket]:
        for event in events:
            if not event.title:
                continue
            if should_skip_title(event.title, config.skip_title_keywords):
                console.print(f"[dim]Skipping '{event.title}' (title filter)[/dim]")
                continue
            if event.start_date and self.is_past(event.start_date):
                continue

            search_text = f"{event.title} {event.description}"
            if not include_match(search_text, config.search):
                continue
            if exclude_match(search_text, config.exclude_keywords):
                console.print(f"[dim]Skipping '{event.title}' (exclude keywords)[/dim]")
                continue

            identity = event_identity(event.title, event.start_date, event.venue_name)
            if self.ledger.is_processed(identity, flow_context):
                continue
            self.ledger.mark_processed(identity, flow_context, job_id)

            final = venue_override(event, config, self.venue_resolver)
            return self.package(event, final, method, identity)
        return None

    @staticmethod
    def package(raw: NormalizedEvent, event: NormalizedEvent, method: str, identity: str) -> EventPacket:
        record, venue_metadata = split_venue_metadata(event)
        return EventPacket(
            title=event.title,
            body={
                "event": record,
                "raw_source": raw.to_record(),
                "venue_metadata": venue_metadata,
                "import_source": IMPORT_SOURCE,
                "extraction_method": method,
            },
            metadata={
                "source_type": IMPORT_SOURCE,
                "extraction_method": method,
                "original_title": event.title,
                "event_identifier": identity,
                "import_timestamp": import_timestamp(),
            },
        )
