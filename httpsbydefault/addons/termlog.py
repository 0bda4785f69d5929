from __future__ import annotations

import logging
import sys
from typing import IO

from httpsbydefault import log


class TermLog:
    def __init__(self, out: IO[str] | None = None):
        self.logger = TermLogHandler(out)
        self.logger.install()

    def load(self, loader):
        loader.add_option(
            "termlog_verbosity", str, "info", "Log verbosity.", choices=log.LogLevels
        )
        self.logger.setLevel(logging.INFO)

    def configure(self, updated):
        if "termlog_verbosity" in updated:
            self.logger.setLevel(log.log_level(updated["termlog_verbosity"].new))

    def uninstall(self) -> None:
        # This happens at the very end after done() is completed,
        # because we don't want to uninstall while other addons are still logging.
        self.logger.uninstall()


class TermLogHandler(log.HttpsLogHandler):
    def __init__(self, out: IO[str] | None = None):
        super().__init__()
        self.file: IO[str] = out or sys.stdout
        self.formatter = log.HttpsFormatter()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print(self.format(record), file=self.file)
        except OSError:
            # We cannot print, exit immediately.
            sys.exit(1)
