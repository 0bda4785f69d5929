"""
Signals are a minimal dispatching system: interested parties connect a receiver,
and every receiver is called when the signal is sent.

Receivers are held by weak reference, so connecting a bound method does not
keep its instance alive. Use the browser event classes in
`httpsbydefault.browser.events` when the subscription must own its callback.
"""

from __future__ import annotations

import inspect
import weakref
from collections.abc import Callable
from typing import Any
from typing import cast
from typing import Generic
from typing import ParamSpec

P = ParamSpec("P")


def make_weak_ref(obj: Any) -> weakref.ReferenceType:
    """
    Like weakref.ref(), but using weakref.WeakMethod for bound methods.
    """
    if hasattr(obj, "__self__"):
        return cast(weakref.ref, weakref.WeakMethod(obj))
    else:
        return weakref.ref(obj)


class _SyncSignal(Generic[P]):
    def __init__(self) -> None:
        self.receivers: list[weakref.ref[Callable]] = []

    def connect(self, receiver: Callable[P, None]) -> None:
        """
        Register a signal receiver. Coroutine functions are rejected, as send() never awaits.
        """
        assert not inspect.iscoroutinefunction(receiver)
        self.receivers.append(make_weak_ref(receiver))

    def disconnect(self, receiver: Callable[P, None]) -> None:
        self.receivers = [r for r in self.receivers if r() != receiver]

    def send(self, *args: P.args, **kwargs: P.kwargs) -> None:
        dead = False
        for ref in list(self.receivers):
            receiver = ref()
            if receiver is None:
                dead = True
                continue
            ret = receiver(*args, **kwargs)
            assert ret is None or not inspect.isawaitable(ret)
        if dead:
            self.receivers = [r for r in self.receivers if r() is not None]


# noinspection PyPep8Naming
def SyncSignal(receiver_spec: Callable[P, None]) -> _SyncSignal[P]:
    """
    Create a synchronous signal with the given function signature for receivers.

    Example:

        s = SyncSignal(lambda changes: None)
        def receiver(changes):
            print(changes)

        s.connect(receiver)
        s.send({"enable_logging": Change(False, True)})
    """
    return cast(_SyncSignal[P], _SyncSignal())
