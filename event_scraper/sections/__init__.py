"""Fallback event section discovery."""

from event_scraper.sections.finder import EventSection, EventSectionFinder, section_title
from event_scraper.sections.selectors import SECTION_RULES, SectionRule

__all__ = ["EventSectionFinder", "EventSection", "section_title", "SECTION_RULES", "SectionRule"]
