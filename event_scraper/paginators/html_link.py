"""Next-page discovery from HTML links."""

from typing import Optional
from urllib.parse import urljoin, urlparse

import lxml.html
from lxml import etree

NEXT_CLASS_QUERIES = [
    '//a[contains(@class, "next")]',
    '//a[contains(@class, "pagination-next")]',
    '//a[contains(@class, "page-next")]',
]
CONTAINER_QUERIES = [
    '//*[contains(@class, "pagination")]//a',
    '//*[contains(@class, "pager")]//a',
    '//nav[@aria-label="pagination"]//a',
    '//*[@role="navigation"]//a',
]
ARROW_TEXTS = {">", ">>", "→"}


def resolve_href(href: str, current_url: str) -> Optional[str]:
    """Absolute same-host URL for href, or None when it must not be followed."""
    href = (href or "").strip()
    if not href or href == "#":
        return None
    if href.lower().startswith(("javascript:", "mailto:")):
        return None

    current = urlparse(current_url)
    if href.startswith("//"):
        href = "https:" + href
    elif href.startswith("/"):
        href = f"{current.scheme or 'https'}://{current.netloc}{href}"
    elif not href.lower().startswith(("http://", "https://")):
        href = urljoin(current_url, href)

    if urlparse(href).hostname != current.hostname:
        return None
    if href.split("#", 1)[0] == current_url.split("#", 1)[0]:
        return None
    return href


def _looks_like_next(link) -> bool:
    text = link.text_content().strip().lower()
    css = (link.get("class") or "").lower()
    aria = (link.get("aria-label") or "").lower()
    return "next" in text or "next" in css or "next" in aria or text in ARROW_TEXTS


class HtmlLinkPaginator:
    def method(self) -> str:
        return "html_link"

    def can_paginate(self, url: str, content: str) -> bool:
        return "<" in content and ">" in content

    def next_page_url(self, url: str, content: str) -> Optional[str]:
        if not urlparse(url).hostname:
            return None
        try:
            root = lxml.html.document_fromstring(content)
        except (etree.ParserError, ValueError):
            return None

        for query in ('//a[@rel="next"]', '//link[@rel="next"]'):
            nodes = root.xpath(query)
            if nodes:
                resolved = resolve_href(nodes[0].get("href"), url)
                if resolved:
                    return resolved

        for query in NEXT_CLASS_QUERIES:
            for link in root.xpath(query):
                resolved = resolve_href(link.get("href"), url)
                if resolved:
                    return resolved

        for query in CONTAINER_QUERIES:
            for link in root.xpath(query):
                if not _looks_like_next(link):
                    continue
                resolved = resolve_href(link.get("href"), url)
                if resolved:
                    return resolved
        return None
