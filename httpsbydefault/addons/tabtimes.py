from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from httpsbydefault.browser.types import Tab
from httpsbydefault.browser.types import TAB_ID_NONE

logger = logging.getLogger(__name__)


@dataclass
class TabTimingRecord:
    created_at: float | None
    last_activated_at: float | None = None
    # True if the tab was opened while we were listening, so that created_at
    # is the real creation time and not the time we first saw the tab.
    observed_creation: bool = False


class TabTimes:
    """
    The tab timing ledger: when each open tab was created and last activated.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self.records: dict[int, TabTimingRecord] = {}
        self.tabs = None

    def load(self, loader):
        self.tabs = loader.master.browser.tabs

    async def running(self):
        await self.bootstrap()

    async def bootstrap(self) -> None:
        """
        Record the tabs that were open before we started listening.

        Around browser start-up, creation times are recent and navigations in
        blank tabs are left alone. Long after start-up, the timestamps are in
        the past, and upgrades are not inadvertently suppressed.
        """
        tabs = await self.tabs.query()
        now = self.clock()
        for tab in tabs:
            record = self.records.get(tab.id)
            if record is None:
                self.records[tab.id] = TabTimingRecord(
                    created_at=tab.last_accessed or now,
                    last_activated_at=now if tab.active else None,
                )
            elif record.created_at is None:
                # Only its activation was seen so far.
                record.created_at = tab.last_accessed or now
        logger.debug(f"Tracking {len(self.records)} open tabs.")

    def tab_created(self, tab: Tab) -> None:
        if tab.id == TAB_ID_NONE:
            return
        now = self.clock()
        record = self.records.setdefault(tab.id, TabTimingRecord(created_at=None))
        record.created_at = now
        record.observed_creation = True
        if tab.active:
            record.last_activated_at = now

    def tab_activated(self, tab_id: int) -> None:
        now = self.clock()
        record = self.records.setdefault(tab_id, TabTimingRecord(created_at=None))
        record.last_activated_at = now

    def tab_removed(self, tab_id: int) -> None:
        self.records.pop(tab_id, None)

    def get(self, tab_id: int) -> TabTimingRecord | None:
        return self.records.get(tab_id)

    def created_at(self, tab_id: int) -> float | None:
        if record := self.records.get(tab_id):
            return record.created_at
        return None

    def last_activated_at(self, tab_id: int) -> float | None:
        if record := self.records.get(tab_id):
            return record.last_activated_at
        return None

    def __contains__(self, tab_id: int) -> bool:
        return tab_id in self.records

    def __len__(self) -> int:
        return len(self.records)

    def done(self):
        self.records.clear()
