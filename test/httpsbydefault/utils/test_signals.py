from unittest import mock

import pytest

from httpsbydefault.utils.signals import SyncSignal


def test_sync_signal() -> None:
    m = mock.Mock()

    s = SyncSignal(lambda changes: None)
    s.connect(m)
    s.send("foo")

    assert m.call_args_list == [mock.call("foo")]

    class Foo:
        called = None

        def bound(self, changes):
            self.called = changes

    f = Foo()
    s.connect(f.bound)
    s.send(changes="bar")
    assert f.called == "bar"
    assert m.call_args_list == [mock.call("foo"), mock.call(changes="bar")]

    s.disconnect(m)
    s.send("baz")
    assert f.called == "baz"
    assert m.call_count == 2

    def err(changes):
        raise RuntimeError

    s.connect(err)
    with pytest.raises(RuntimeError):
        s.send(42)


def test_signal_weakref() -> None:
    def m1():
        pass

    def m2():
        pass

    s = SyncSignal(lambda: None)
    s.connect(m1)
    s.connect(m2)
    del m2
    s.send()
    assert len(s.receivers) == 1


def test_signal_weakref_bound_method() -> None:
    class Receiver:
        def method(self):
            pass

    s = SyncSignal(lambda: None)
    r = Receiver()
    s.connect(r.method)
    assert len(s.receivers) == 1
    del r
    s.send()
    assert len(s.receivers) == 0


def test_sync_signal_async_receiver() -> None:
    s = SyncSignal(lambda: None)

    async def receiver():
        pass

    with pytest.raises(AssertionError):
        s.connect(receiver)
