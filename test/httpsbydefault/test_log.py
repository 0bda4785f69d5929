import logging
import sys

import pytest

from httpsbydefault import log


def record(msg, **extra):
    r = logging.LogRecord("httpsbydefault.test", logging.INFO, __file__, 1, msg, (), None)
    r.created = 0
    r.msecs = 5
    for k, v in extra.items():
        setattr(r, k, v)
    return r


def test_formatter():
    f = log.HttpsFormatter()
    assert f.format(record("Redirecting http://example.com/")).endswith(
        ".005] Redirecting http://example.com/"
    )
    assert "][tab 3] hello" in f.format(record("hello", tab_id=3))
    assert "[tab" not in f.format(record("hello", tab_id=None))


def test_formatter_exc_info():
    f = log.HttpsFormatter()
    try:
        raise ValueError("oops")
    except ValueError:
        r = logging.LogRecord(
            "x", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info()
        )
    out = f.format(r)
    assert out.startswith("[")
    assert "failed\nTraceback" in out
    assert "ValueError: oops" in out


@pytest.mark.parametrize(
    "name, level",
    [
        ("error", logging.ERROR),
        ("warn", logging.WARNING),
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
    ],
)
def test_log_level(name, level):
    assert log.log_level(name) == level
    assert name in log.LogLevels


def test_handler_install():
    h = log.HttpsLogHandler()
    h.install()
    assert h in logging.getLogger().handlers
    assert h.filter(record("foo"))
    h.uninstall()
    assert h not in logging.getLogger().handlers


def test_handler_isolation(monkeypatch):
    monkeypatch.setenv("PYTEST_CURRENT_TEST", "test_a")
    a = log.HttpsLogHandler()
    a.install()
    assert a.filter(record("foo"))

    monkeypatch.setenv("PYTEST_CURRENT_TEST", "test_b")
    assert not a.filter(record("foo"))

    b = log.HttpsLogHandler()
    b.install()
    assert a not in logging.getLogger().handlers
    assert b in logging.getLogger().handlers
    b.uninstall()
