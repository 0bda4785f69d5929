"""
Tracking of upgraded navigations.

When a navigation is upgraded, we remember the upgraded URL for the tab until
the browser tells us how the upgrade went:

- a response that is not a redirect means the upgrade has been loaded,
- a redirect restarts the request with the same request id. We record that id,
  so that the restarted request is not mistaken for a typed URL, and wait for
  the response body to start,
- an error for the upgraded URL means the server is not reachable over https,
  and the tab now shows the attempted URL.

The tracking state is also released when the tab is removed, or when a new
upgrade replaces it.
"""

from __future__ import annotations

import enum
import logging

from httpsbydefault.browser.filters import RequestFilter
from httpsbydefault.browser.types import ErrorOccurredDetails
from httpsbydefault.browser.types import HeadersReceivedDetails
from httpsbydefault.browser.types import ResponseStartedDetails

logger = logging.getLogger(__name__)

REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})


class State(enum.Enum):
    ARMED = "armed"
    REDIRECT_OBSERVED = "redirect_observed"
    SETTLED = "settled"


class PendingRedirect:
    """
    An upgraded navigation of one tab, waiting for its outcome.

    Instances are created through `Redirects.register`. Every exit path
    ends in `settle()`, which detaches all web request listeners exactly once.
    """

    def __init__(self, registry: Redirects, tab_id: int, requested_url: str) -> None:
        self.registry = registry
        self.tab_id = tab_id
        self.requested_url = requested_url
        self.redirected_request_id: str | None = None
        self.state = State.ARMED

    def __repr__(self):
        return f"<PendingRedirect {self.requested_url} (tab {self.tab_id}, {self.state.value})>"

    @property
    def live(self) -> bool:
        return self.registry.get(self.tab_id) is self

    def _filter(self, *urls: str) -> RequestFilter:
        return RequestFilter(urls=urls, types=("main_frame",), tab_id=self.tab_id)

    def arm(self) -> None:
        web_request = self.registry.web_request
        # Any response for the main frame settles the upgrade,
        # not necessarily the response for requested_url.
        web_request.on_headers_received.add_listener(
            self.on_headers_received, self._filter("*://*/*"), blocking=True
        )
        web_request.on_error_occurred.add_listener(
            self.on_error_occurred, self._filter(self.requested_url.partition("#")[0])
        )

    def settle(self) -> None:
        if self.state is State.SETTLED:
            return
        self.state = State.SETTLED
        web_request = self.registry.web_request
        web_request.on_headers_received.remove_listener(self.on_headers_received)
        web_request.on_response_started.remove_listener(self.on_response_started)
        web_request.on_error_occurred.remove_listener(self.on_error_occurred)
        self.registry._discard(self)

    def on_headers_received(self, details: HeadersReceivedDetails) -> None:
        if details.status_code not in REDIRECT_STATUS_CODES:
            self.settle()
            return
        if not self.live:
            # We have been settled or replaced between queueing the event and
            # its dispatch. Registering another listener now would leak it.
            return

        self.state = State.REDIRECT_OBSERVED
        self.redirected_request_id = details.request_id

        # Without a valid Location header the request is not restarted, so we
        # wait for a response body instead. Headers may be received several
        # times during a request; the listener is only registered once.
        self.registry.web_request.on_response_started.add_listener(
            self.on_response_started, self._filter("*://*/*")
        )

    def on_response_started(self, details: ResponseStartedDetails) -> None:
        self.settle()

    def on_error_occurred(self, details: ErrorOccurredDetails) -> None:
        logger.debug(
            f"Upgrade of {self.requested_url} failed: {details.error}",
            extra={"tab_id": self.tab_id},
        )
        self.settle()


class Redirects:
    """
    The registry of pending redirects, at most one per tab.
    """

    def __init__(self) -> None:
        self.pending: dict[int, PendingRedirect] = {}
        self.web_request = None

    def load(self, loader):
        self.web_request = loader.master.browser.web_request

    def get(self, tab_id: int) -> PendingRedirect | None:
        return self.pending.get(tab_id)

    def register(self, tab_id: int, requested_url: str) -> PendingRedirect:
        """
        Track an upgraded navigation, replacing the tab's previous one.
        The caller must make sure that `tab_id` refers to a tab whose
        removal will be observed.
        """
        self.unregister(tab_id)
        pending = PendingRedirect(self, tab_id, requested_url)
        pending.arm()
        self.pending[tab_id] = pending
        return pending

    def unregister(self, tab_id: int) -> None:
        if pending := self.pending.get(tab_id):
            pending.settle()

    def _discard(self, pending: PendingRedirect) -> None:
        if self.pending.get(pending.tab_id) is pending:
            del self.pending[pending.tab_id]

    def tab_removed(self, tab_id: int) -> None:
        self.unregister(tab_id)

    def done(self):
        for pending in list(self.pending.values()):
            pending.settle()

    def __len__(self) -> int:
        return len(self.pending)
