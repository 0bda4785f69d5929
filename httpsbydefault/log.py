from __future__ import annotations

import logging
import os

LogLevels = [
    "error",
    "warn",
    "info",
    "debug",
]


class HttpsFormatter(logging.Formatter):
    """
    Formats records as "[12:34:56.789] message". Records logged with a
    `tab_id` extra are prefixed with the tab.
    """

    with_tab = "[%s][tab %s] %s"
    without_tab = "[%s] %s"

    default_time_format = "%H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        time = self.formatTime(record)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        tab_id = getattr(record, "tab_id", None)
        if tab_id is not None:
            return self.with_tab % (time, tab_id, message)
        else:
            return self.without_tab % (time, message)


class HttpsLogHandler(logging.Handler):
    """
    A handler that installs itself on the root logger.

    Handlers created during a test only emit records of that test, so that
    a handler left behind by an earlier test does not produce output.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._initiated_in_test = os.environ.get("PYTEST_CURRENT_TEST")

    def filter(self, record: logging.LogRecord) -> bool:
        # We can't remove stale handlers here because that would modify .handlers during iteration!
        return bool(
            super().filter(record)
            and (
                not self._initiated_in_test
                or self._initiated_in_test == os.environ.get("PYTEST_CURRENT_TEST")
            )
        )

    def install(self) -> None:
        if self._initiated_in_test:
            for h in list(logging.getLogger().handlers):
                if (
                    isinstance(h, HttpsLogHandler)
                    and h._initiated_in_test != self._initiated_in_test
                ):
                    h.uninstall()

        logging.getLogger().addHandler(self)

    def uninstall(self) -> None:
        logging.getLogger().removeHandler(self)


def log_level(name: str) -> int:
    """Translate a verbosity option value into a logging level."""
    if name == "warn":
        return logging.WARNING
    return logging.getLevelName(name.upper())
