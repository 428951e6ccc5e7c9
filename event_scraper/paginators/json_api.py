"""Page-number pagination for WordPress REST responses."""

import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse

from event_scraper.extractors.base import load_json

WP_JSON_RE = re.compile(r"wp-json/", re.I)


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def with_page(url: str, page: int) -> str:
    """url with its `page` query parameter set, other parameters kept."""
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query["page"] = str(page)
    rebuilt = f"{parsed.scheme or 'https'}://{parsed.hostname}"
    if parsed.port:
        rebuilt += f":{parsed.port}"
    return f"{rebuilt}{parsed.path}?{urlencode(query)}"


def url_page(url: str) -> int:
    query = dict(parse_qsl(urlparse(url).query))
    return max(_as_int(query.get("page"), 1), 1)


class JsonApiPaginator:
    def method(self) -> str:
        return "json_api"

    def can_paginate(self, url: str, content: str) -> bool:
        if not WP_JSON_RE.search(url):
            return False
        data = load_json(content)
        return isinstance(data, dict) and "total_pages" in data

    def next_page_url(self, url: str, content: str) -> Optional[str]:
        data = load_json(content)
        if not isinstance(data, dict):
            return None
        # Tribe responses omit "page"; the request URL carries it
        page = _as_int(data.get("page"), url_page(url))
        total = _as_int(data.get("total_pages"), 1)
        if page >= total:
            return None
        return with_page(url, page + 1)
