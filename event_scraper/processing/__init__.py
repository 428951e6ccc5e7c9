"""Post-extraction filtering, deduplication and packaging."""

from event_scraper.processing.coverage import CoverageReport, coverage_report
from event_scraper.processing.filters import exclude_match, include_match, should_skip_title
from event_scraper.processing.identity import event_identity
from event_scraper.processing.ledger import JsonFileLedger, MemoryLedger, ProcessedLedger
from event_scraper.processing.processor import StructuredDataProcessor, VenueResolver

__all__ = [
    "CoverageReport",
    "coverage_report",
    "exclude_match",
    "include_match",
    "should_skip_title",
    "event_identity",
    "JsonFileLedger",
    "MemoryLedger",
    "ProcessedLedger",
    "StructuredDataProcessor",
    "VenueResolver",
]
