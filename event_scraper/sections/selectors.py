"""XPath rules for locating event sections, most specific first."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SectionRule:
    xpath: str
    # Skip table rows whose date cell is in the past
    table_row_date_filter: bool = False
    # Node carries a base64 JSON event in data-calendar-event
    base64_event: bool = False


def _class_token(name: str) -> str:
    return f'contains(concat(" ", normalize-space(@class), " "), " {name} ")'


SECTION_RULES: list[SectionRule] = [
    # Schema.org microdata
    SectionRule('//*[contains(@itemtype, "Event")]'),
    # Google Calendar widgets
    SectionRule("//*[@data-calendar-event]", base64_event=True),
    # SeeTickets widgets
    SectionRule('//*[contains(@class, "seetickets-list-event-container")]'),
    SectionRule('//*[contains(@class, "seetickets-calendar-event")]'),
    # Turntable Tickets
    SectionRule(f"//*[{_class_token('show-card')}]"),
    # Venue calendar tables
    SectionRule(
        '//tr[.//td[contains(@class, "event-date") or contains(@class, "event-name") or contains(@class, "event")]]',
        table_row_date_filter=True,
    ),
    SectionRule(
        '//table[contains(@class, "calendar") or contains(@class, "events") or contains(@class, "schedule")]//tbody//tr',
        table_row_date_filter=True,
    ),
    SectionRule('//section[contains(@class, "calendar")]//table//tbody//tr', table_row_date_filter=True),
    # Known listing templates
    SectionRule(f"//*[{_class_token('recspec-events--event')}]"),
    SectionRule('//*[contains(@class, "eventlist-event")]'),
    SectionRule('//article[contains(@class, "eventlist-event")]'),
    SectionRule('//article[contains(@class, "event")]'),
    SectionRule('//article[contains(@class, "show")]'),
    SectionRule('//article[contains(@class, "concert")]'),
    # Common class names
    SectionRule('//*[contains(@class, "event-content-row")]'),
    SectionRule('//*[contains(@class, "event-item")]'),
    SectionRule('//*[contains(@class, "show-item")]'),
    SectionRule('//*[contains(@class, "concert-item")]'),
    SectionRule('//*[contains(@class, "calendar-event")]'),
    SectionRule('//*[contains(@class, "event-card")]'),
    SectionRule('//*[contains(@class, "event-entry")]'),
    SectionRule('//*[contains(@class, "event-listing")]'),
    # List items inside event containers; these can match navigation
    SectionRule('//*[contains(@class, "events")]//li'),
    SectionRule('//*[contains(@class, "shows")]//li'),
    SectionRule('//*[contains(@class, "calendar")]//li'),
]
