"""Next-page resolution for multi-page listings."""

from typing import Optional, Sequence

from event_scraper.paginators.base import Paginator
from event_scraper.paginators.html_link import HtmlLinkPaginator
from event_scraper.paginators.json_api import JsonApiPaginator


def default_paginators() -> list[Paginator]:
    # JSON first: HTML link discovery claims any markup
    return [JsonApiPaginator(), HtmlLinkPaginator()]


def find_next_page_url(paginators: Sequence[Paginator], url: str, content: str) -> Optional[str]:
    """Ask each paginator that claims the page; first non-empty answer wins."""
    for paginator in paginators:
        if not paginator.can_paginate(url, content):
            continue
        next_url = paginator.next_page_url(url, content)
        if next_url:
            return next_url
    return None


__all__ = [
    "Paginator",
    "HtmlLinkPaginator",
    "JsonApiPaginator",
    "default_paginators",
    "find_next_page_url",
]
