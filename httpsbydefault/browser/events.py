"""
Browser events.

Unlike `httpsbydefault.utils.signals`, events hold strong references to their
listeners: a listener is frequently a closure or a bound method of an object
that nothing else references, and it must stay alive until it is removed.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from httpsbydefault.browser.filters import RequestFilter
from httpsbydefault.browser.types import BlockingResponse
from httpsbydefault.browser.types import RequestDetails

logger = logging.getLogger(__name__)


class Event:
    """
    A browser event. Listeners are called in registration order, and
    a listener is never registered twice.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: dict[Callable, Any] = {}

    def add_listener(self, callback: Callable) -> None:
        self._listeners.setdefault(callback, None)

    def remove_listener(self, callback: Callable) -> None:
        self._listeners.pop(callback, None)

    def has_listener(self, callback: Callable) -> bool:
        return callback in self._listeners

    def has_listeners(self) -> bool:
        return bool(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} ({len(self)} listeners)>"

    async def _call(self, callback: Callable, *args) -> Any:
        try:
            ret = callback(*args)
            if inspect.isawaitable(ret):
                ret = await ret
        except Exception as e:
            # A failing listener must not keep the others from seeing the event.
            logger.error(
                f"Error in {self.name} listener {callback!r}: {e}",
                exc_info=True,
            )
            return None
        return ret

    async def dispatch(self, *args) -> None:
        for callback in list(self._listeners):
            # Listeners may be removed by an earlier listener of the same dispatch.
            if callback in self._listeners:
                await self._call(callback, *args)


class WebRequestEvent(Event):
    """
    A web request event. Every listener is registered with a `RequestFilter`,
    and only sees requests matching it. Blocking listeners may return a
    `BlockingResponse` to modify the request.
    """

    def __init__(self, name: str, *, blocking_allowed: bool = False) -> None:
        super().__init__(name)
        self.blocking_allowed = blocking_allowed

    def add_listener(  # type: ignore[override]
        self,
        callback: Callable,
        filter: RequestFilter,
        blocking: bool = False,
    ) -> None:
        if blocking and not self.blocking_allowed:
            raise ValueError(f"{self.name} does not support blocking listeners.")
        self._listeners.setdefault(callback, (filter, blocking))

    async def dispatch(self, details: RequestDetails) -> BlockingResponse | None:  # type: ignore[override]
        response: BlockingResponse | None = None
        for callback in list(self._listeners):
            registration = self._listeners.get(callback)
            if registration is None:
                continue
            filter, blocking = registration
            if not filter(details):
                continue
            ret = await self._call(callback, details)
            if blocking and isinstance(ret, BlockingResponse) and response is None:
                response = ret
        return response
