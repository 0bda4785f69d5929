"""
The browser collaborator.

The decision engine never talks to a browser directly. It consumes the
interfaces below, which an embedder implements on top of its event source.
`httpsbydefault.test.tbrowser` provides an in-memory implementation.
"""

from __future__ import annotations

from typing import Protocol

from httpsbydefault.browser.events import Event
from httpsbydefault.browser.events import WebRequestEvent
from httpsbydefault.browser.types import Tab


class Tabs(Protocol):
    on_created: Event
    """Listeners receive the created `Tab`."""
    on_activated: Event
    """Listeners receive the id of the activated tab."""
    on_removed: Event
    """Listeners receive the id of the removed tab."""

    async def query(self) -> list[Tab]:
        """All currently open tabs."""
        ...

    async def get(self, tab_id: int) -> Tab:
        """
        Raises:
            httpsbydefault.exceptions.TabNotFound, if the tab does not exist (yet).
        """
        ...


class WebRequest(Protocol):
    on_before_request: WebRequestEvent
    on_headers_received: WebRequestEvent
    on_response_started: WebRequestEvent
    on_error_occurred: WebRequestEvent


class Browser(Protocol):
    tabs: Tabs
    web_request: WebRequest


__all__ = [
    "Browser",
    "Tabs",
    "WebRequest",
]
