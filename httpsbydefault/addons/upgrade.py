from __future__ import annotations

import asyncio
import logging

from httpsbydefault import decision
from httpsbydefault import exceptions
from httpsbydefault.browser.types import Navigation
from httpsbydefault.browser.types import Tab

logger = logging.getLogger(__name__)

TAB_LOOKUP_TIMEOUT = 0.2
TAB_LOOKUP_INTERVAL = 0.02


class HttpsUpgrade:
    """
    Upgrades address bar navigations from http: to https:.

    Depends on the preferences, tabtimes and redirects addons,
    which must be registered before this one.
    """

    def __init__(self) -> None:
        self.master = None

    def load(self, loader):
        self.master = loader.master

    @property
    def preferences(self):
        return self.master.addons.get("preferences")

    @property
    def tabtimes(self):
        return self.master.addons.get("tabtimes")

    @property
    def redirects(self):
        return self.master.addons.get("redirects")

    async def resolve_tab(self, tab_id: int) -> Tab | None:
        """
        Fetch the current state of a tab. When a URL is loaded in a new tab,
        the request may be sent before the tab exists, so we retry for a short while.
        Returns None if the tab did not show up in time.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + TAB_LOOKUP_TIMEOUT
        while True:
            try:
                return await self.master.browser.tabs.get(tab_id)
            except exceptions.TabNotFound:
                if loop.time() >= deadline:
                    return None
                await asyncio.sleep(TAB_LOOKUP_INTERVAL)

    async def navigation(self, nav: Navigation) -> None:
        if nav.redirect_url:
            return  # another addon has already redirected this navigation.
        details = nav.details

        prefs = self.preferences
        await prefs.wait_ready()

        if skip := decision.precheck(details, prefs.suppressed_domains):
            self._log_skip(nav, skip)
            return

        tab = await self.resolve_tab(details.tab_id)
        d = decision.decide_candidate(
            details,
            tab,
            self.tabtimes,
            self.redirects.get(details.tab_id),
        )
        if not d.upgrade:
            self._log_skip(nav, d)
            return

        # Only tabs in the timing ledger are tracked. Other tabs may already
        # be closed, and nothing would release their tracker. A server
        # redirect in such a tab is not recognized and is upgraded again.
        if details.tab_id in self.tabtimes:
            self.redirects.register(details.tab_id, d.new_url)

        if prefs.enable_logging:
            logger.info(f"Redirecting {details.url}", extra={"tab_id": details.tab_id})
        nav.redirect_url = d.new_url

    def _log_skip(self, nav: Navigation, d: decision.Decision) -> None:
        if self.preferences.enable_logging:
            logger.debug(
                f"Not redirecting {nav.url}: {d.reason}", extra={"tab_id": nav.tab_id}
            )
