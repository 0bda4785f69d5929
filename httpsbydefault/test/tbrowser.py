"""
An in-memory browser for tests and for embedders that drive the engine programmatically.

All helpers that fire events are coroutines that return once every listener
has run. Run them as tasks to interleave events.
"""

from __future__ import annotations

import dataclasses
import itertools

from httpsbydefault import exceptions
from httpsbydefault.browser.events import Event
from httpsbydefault.browser.events import WebRequestEvent
from httpsbydefault.browser.types import BeforeRequestDetails
from httpsbydefault.browser.types import BLANK_URL
from httpsbydefault.browser.types import ErrorOccurredDetails
from httpsbydefault.browser.types import HeadersReceivedDetails
from httpsbydefault.browser.types import ResponseStartedDetails
from httpsbydefault.browser.types import Tab
from httpsbydefault.browser.types import TAB_ID_NONE


class TClock:
    """A manually advanced clock, in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class TTabs:
    def __init__(self, clock: TClock):
        self.clock = clock
        self.on_created = Event("tabs.onCreated")
        self.on_activated = Event("tabs.onActivated")
        self.on_removed = Event("tabs.onRemoved")
        self.tabs: dict[int, Tab] = {}
        self._ids = itertools.count(1)

    async def query(self) -> list[Tab]:
        return [dataclasses.replace(t) for t in self.tabs.values()]

    async def get(self, tab_id: int) -> Tab:
        try:
            return dataclasses.replace(self.tabs[tab_id])
        except KeyError:
            raise exceptions.TabNotFound(tab_id) from None

    def add(self, url: str = BLANK_URL, active: bool = False, **kwargs) -> Tab:
        """
        Add a tab without notifying anyone, like a tab that was open before
        the listeners were installed.
        """
        tab = Tab(next(self._ids), url=url, active=False, **kwargs)
        self.tabs[tab.id] = tab
        if active:
            self._set_active(tab.id)
        return tab

    def update(self, tab_id: int, **kwargs) -> Tab:
        tab = self.tabs[tab_id]
        for k, v in kwargs.items():
            setattr(tab, k, v)
        return tab

    def _set_active(self, tab_id: int) -> None:
        for t in self.tabs.values():
            t.active = t.id == tab_id
        self.tabs[tab_id].last_accessed = self.clock()

    async def create(self, url: str = BLANK_URL, active: bool = True) -> Tab:
        tab = self.add(url, active=active)
        await self.on_created.dispatch(dataclasses.replace(tab))
        if active:
            await self.on_activated.dispatch(tab.id)
        return tab

    async def activate(self, tab_id: int) -> None:
        self._set_active(tab_id)
        await self.on_activated.dispatch(tab_id)

    async def remove(self, tab_id: int) -> None:
        del self.tabs[tab_id]
        await self.on_removed.dispatch(tab_id)


class TWebRequest:
    def __init__(self):
        self.on_before_request = WebRequestEvent(
            "webRequest.onBeforeRequest", blocking_allowed=True
        )
        self.on_headers_received = WebRequestEvent(
            "webRequest.onHeadersReceived", blocking_allowed=True
        )
        self.on_response_started = WebRequestEvent("webRequest.onResponseStarted")
        self.on_error_occurred = WebRequestEvent("webRequest.onErrorOccurred")

    def listener_count(self) -> int:
        return (
            len(self.on_before_request)
            + len(self.on_headers_received)
            + len(self.on_response_started)
            + len(self.on_error_occurred)
        )


class TBrowser:
    def __init__(self, clock: TClock | None = None):
        self.clock = clock or TClock()
        self.tabs = TTabs(self.clock)
        self.web_request = TWebRequest()
        self._request_ids = itertools.count(1)

    def request_id(self) -> str:
        return str(next(self._request_ids))

    async def navigate(
        self,
        tab_id: int,
        url: str,
        *,
        origin_url: str | None = None,
        type: str = "main_frame",
        request_id: str | None = None,
    ) -> str | None:
        """
        Start a request. Returns the URL the request was redirected to by a
        blocking listener, or None if it proceeds unmodified.
        """
        details = BeforeRequestDetails(
            request_id=request_id or self.request_id(),
            url=url,
            tab_id=tab_id,
            type=type,
            timestamp=self.clock(),
            origin_url=origin_url,
        )
        response = await self.web_request.on_before_request.dispatch(details)
        if type == "main_frame" and tab_id in self.tabs.tabs:
            self.tabs.update(tab_id, status="loading")
        if response is not None and response.redirect_url:
            return response.redirect_url
        return None

    async def headers_received(
        self,
        tab_id: int,
        url: str,
        status_code: int = 200,
        *,
        request_id: str | None = None,
        type: str = "main_frame",
    ) -> None:
        await self.web_request.on_headers_received.dispatch(
            HeadersReceivedDetails(
                request_id=request_id or self.request_id(),
                url=url,
                tab_id=tab_id,
                type=type,
                timestamp=self.clock(),
                status_code=status_code,
            )
        )

    async def response_started(
        self,
        tab_id: int,
        url: str,
        status_code: int = 200,
        *,
        request_id: str | None = None,
        type: str = "main_frame",
    ) -> None:
        await self.web_request.on_response_started.dispatch(
            ResponseStartedDetails(
                request_id=request_id or self.request_id(),
                url=url,
                tab_id=tab_id,
                type=type,
                timestamp=self.clock(),
                status_code=status_code,
            )
        )
        self._commit(tab_id, url, type)

    async def error_occurred(
        self,
        tab_id: int,
        url: str,
        error: str = "NS_ERROR_CONNECTION_REFUSED",
        *,
        request_id: str | None = None,
        type: str = "main_frame",
    ) -> None:
        await self.web_request.on_error_occurred.dispatch(
            ErrorOccurredDetails(
                request_id=request_id or self.request_id(),
                url=url,
                tab_id=tab_id,
                type=type,
                timestamp=self.clock(),
                error=error,
            )
        )
        # The error page shows the attempted URL.
        self._commit(tab_id, url, type)

    def _commit(self, tab_id: int, url: str, type: str) -> None:
        if type == "main_frame" and tab_id != TAB_ID_NONE and tab_id in self.tabs.tabs:
            self.tabs.update(tab_id, url=url.partition("#")[0], status="complete")
