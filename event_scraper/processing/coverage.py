"""Data-quality report for an emitted packet.

Used by the CLI `test` command to tell an operator whether a source needs a
venue override or has a time zone problem before it is scheduled.
"""

from typing import Optional

from pydantic import BaseModel, Field

from event_scraper.models import EventPacket

TIME_DATA_WARNING = "TIME DATA: Missing start/end time - check ICS feed timezone handling or source data"
MISSING_VENUE_WARNING = "VENUE COVERAGE: Missing venue name; set venue override."
INCOMPLETE_ADDRESS_WARNING = (
    "VENUE COVERAGE: Missing venue address fields (venueAddress/venueCity/venueState). "
    "Geocoding may fail; set venue override."
)
RAW_HTML_WARNING = "No structured venue fields. Set venue override for reliable address/geocoding."


class CoverageReport(BaseModel):
    status: str = "ok"  # ok, warning, empty
    extraction_method: Optional[str] = None
    title: str = ""
    warnings: list[str] = Field(default_factory=list)
    fields: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def coverage_report(packet: Optional[EventPacket]) -> CoverageReport:
    if packet is None:
        return CoverageReport(status="empty")

    report = CoverageReport(extraction_method=packet.extraction_method, title=packet.title)
    if packet.is_raw_html:
        report.warnings.append(RAW_HTML_WARNING)
        report.status = "warning"
        return report

    event = packet.event
    if event is None:
        return CoverageReport(status="empty", extraction_method=packet.extraction_method)

    report.fields = {
        k: v for k, v in event.to_record().items()
        if k in ("startDate", "startTime", "endTime", "venueName", "venueAddress", "venueCity", "venueState")
    }

    if event.start_date and not event.start_time:
        report.warnings.append(TIME_DATA_WARNING)
    if not event.venue_name:
        report.warnings.append(MISSING_VENUE_WARNING)
    if not (event.venue_address and event.venue_city and event.venue_state):
        report.warnings.append(INCOMPLETE_ADDRESS_WARNING)

    if report.warnings:
        report.status = "warning"
    return report
