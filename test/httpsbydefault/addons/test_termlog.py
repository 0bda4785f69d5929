import builtins
import io
import logging

import pytest

from httpsbydefault import exceptions
from httpsbydefault.addons import termlog
from httpsbydefault.test import taddons


@pytest.fixture(autouse=True)
def ensure_cleanup():
    yield
    assert not any(isinstance(x, termlog.TermLogHandler) for x in logging.root.handlers)


def test_output(capsys):
    logging.getLogger().setLevel(logging.DEBUG)
    t = termlog.TermLog()
    with taddons.context(t) as tctx:
        tctx.options.termlog_verbosity = "info"
        tctx.configure(t)
        logging.info("one")
        logging.debug("two")
        logging.warning("three")
        logging.error("four")
    out, err = capsys.readouterr()
    assert "one" in out
    assert "two" not in out
    assert "three" in out
    assert "four" in out
    t.uninstall()


async def test_verbosity() -> None:
    logging.getLogger().setLevel(logging.DEBUG)
    f = io.StringIO()
    t = termlog.TermLog(out=f)
    with taddons.context(t) as tctx:
        tctx.configure(t, termlog_verbosity="warn")
        logging.info("quiet")
        logging.warning("loud")
        tctx.configure(t, termlog_verbosity="debug")
        logging.debug("verbose")
        with pytest.raises(exceptions.OptionsError):
            tctx.configure(t, termlog_verbosity="chatty")
        assert tctx.options.termlog_verbosity == "debug"

    assert "quiet" not in f.getvalue()
    assert "loud" in f.getvalue()
    assert "verbose" in f.getvalue()
    t.uninstall()


async def test_tab_prefix() -> None:
    f = io.StringIO()
    t = termlog.TermLog(out=f)
    with taddons.context(t) as tctx:
        tctx.configure(t)
        logging.getLogger("httpsbydefault").warning("hello", extra={"tab_id": 7})

    assert "[tab 7] hello" in f.getvalue()
    t.uninstall()


async def test_cannot_print(monkeypatch) -> None:
    def _raise(*args, **kwargs):
        raise OSError

    monkeypatch.setattr(builtins, "print", _raise)

    t = termlog.TermLog()
    with taddons.context(t) as tctx:
        tctx.configure(t)
        with pytest.raises(SystemExit) as exc_info:
            logging.error("Should not log this, but raise instead")

        assert exc_info.value.args[0] == 1

    t.uninstall()
