from __future__ import annotations

import asyncio
import logging

from httpsbydefault import suffixtrie

logger = logging.getLogger(__name__)

DEFAULTS = {
    "domains_nohttps": "",
    "enable_logging": False,
}


class Preferences:
    """
    The parsed preferences: the domain suppression index and the logging switch.

    The state is rebuilt whenever the backing preferences change. It is not
    ready until the initial read from the preference store has completed,
    and readers must `await wait_ready()` first.
    """

    def __init__(self) -> None:
        self.suppressed_domains = suffixtrie.SuffixTrie()
        self.enable_logging: bool = False
        self.ready = asyncio.Event()
        self.store = None

    def load(self, loader):
        loader.add_option(
            "domains_nohttps",
            str,
            DEFAULTS["domains_nohttps"],
            """
            Whitespace-separated list of domains that are never upgraded to https.
            Subdomains of a listed domain are excluded as well.
            """,
        )
        loader.add_option(
            "enable_logging",
            bool,
            DEFAULTS["enable_logging"],
            "Log a line for every navigation that is upgraded to https.",
        )
        self.store = loader.master.options

    async def running(self):
        await self.read()

    async def read(self) -> None:
        """
        Perform the initial read from the preference store. A failure leaves
        the defaults in place, and readiness is signalled regardless.
        """
        try:
            prefs = await self.store.get(DEFAULTS)
        except Exception as e:
            logger.warning(f"Failed to read preferences, using defaults: {e}")
        else:
            self.suppressed_domains = suffixtrie.build(prefs["domains_nohttps"])
            self.enable_logging = bool(prefs["enable_logging"])
        finally:
            self.ready.set()

    async def wait_ready(self) -> None:
        if not self.ready.is_set():
            await self.ready.wait()

    def configure(self, updated):
        if "domains_nohttps" in updated:
            self.suppressed_domains = suffixtrie.build(updated["domains_nohttps"].new)
            logger.debug(f"{len(self.suppressed_domains)} domains excluded from https upgrades.")
        if "enable_logging" in updated:
            self.enable_logging = bool(updated["enable_logging"].new)
