"""Paginator contract."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Paginator(Protocol):
    def method(self) -> str:
        ...

    def can_paginate(self, url: str, content: str) -> bool:
        ...

    def next_page_url(self, url: str, content: str) -> Optional[str]:
        """Absolute URL of the following page, or None when there is none."""
        ...
