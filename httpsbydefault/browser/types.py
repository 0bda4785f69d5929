"""
Value types exchanged with the browser.

Timestamps are seconds since the epoch, as returned by `time.time()`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from dataclasses import field

TAB_ID_NONE = -1
"""The tab id of requests that are not associated with a visible tab."""

BLANK_URL = "about:blank"


@dataclass
class Tab:
    id: int
    url: str = BLANK_URL
    active: bool = False
    status: str = "complete"
    """Either "loading" or "complete"."""
    last_accessed: float | None = None


@dataclass(frozen=True)
class RequestDetails:
    request_id: str
    """Preserved by the browser when a request is restarted by an HTTP redirect."""
    url: str
    tab_id: int = TAB_ID_NONE
    type: str = "main_frame"
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class BeforeRequestDetails(RequestDetails):
    origin_url: str | None = None
    """The URL of the page that triggered the request, absent for address bar navigations."""


@dataclass(frozen=True)
class HeadersReceivedDetails(RequestDetails):
    status_code: int = 200


@dataclass(frozen=True)
class ResponseStartedDetails(RequestDetails):
    status_code: int = 200


@dataclass(frozen=True)
class ErrorOccurredDetails(RequestDetails):
    error: str = "NS_ERROR_NET_RESET"


@dataclass(frozen=True)
class BlockingResponse:
    redirect_url: str | None = None


class Navigation:
    """
    A navigation that is about to be sent, handed through the addon chain.

    Addons modify it in place: setting `redirect_url` makes the browser load
    that URL instead of `details.url`.
    """

    def __init__(self, details: BeforeRequestDetails):
        self.details = details
        self.redirect_url: str | None = None

    @property
    def url(self) -> str:
        return self.details.url

    @property
    def tab_id(self) -> int:
        return self.details.tab_id

    def __repr__(self):
        if self.redirect_url:
            return f"<Navigation {self.url} -> {self.redirect_url} (tab {self.tab_id})>"
        return f"<Navigation {self.url} (tab {self.tab_id})>"
