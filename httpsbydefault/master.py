import asyncio
import logging
import os

from httpsbydefault import addonmanager
from httpsbydefault import hooks
from httpsbydefault import options
from httpsbydefault import optmanager
from httpsbydefault.addons import termlog
from httpsbydefault.browser import Browser
from httpsbydefault.browser.filters import RequestFilter
from httpsbydefault.browser.types import BeforeRequestDetails
from httpsbydefault.browser.types import BlockingResponse
from httpsbydefault.browser.types import Navigation
from httpsbydefault.browser.types import Tab
from httpsbydefault.utils import asyncio_utils
from httpsbydefault.version import HTTPSBYDEFAULT

logger = logging.getLogger(__name__)

NAVIGATION_FILTER = RequestFilter(urls=("http://*/*",), types=("main_frame",))


class Master:
    """
    The master connects the browser's events to the addon chain, and owns
    the event loop everything runs on.
    """

    event_loop: asyncio.AbstractEventLoop
    _termlog_addon: termlog.TermLog | None = None

    def __init__(
        self,
        opts: options.Options | None,
        browser: Browser,
        event_loop: asyncio.AbstractEventLoop | None = None,
        with_termlog: bool = False,
    ):
        self.options: options.Options = opts or options.Options()
        self.browser = browser
        self.addons = addonmanager.AddonManager(self)
        self._installed = False

        if with_termlog:
            logging.getLogger().setLevel(logging.DEBUG)
            self._termlog_addon = termlog.TermLog()
            self.addons.add(self._termlog_addon)

        # We expect an active event loop here already because addons
        # may want to spawn tasks during the initial configuration phase,
        # which happens before run().
        self.event_loop = event_loop or asyncio.get_running_loop()
        self.should_exit = asyncio.Event()

    def load_config(self) -> None:
        """
        Load preferences from the config file in the configuration directory.
        Preferences of addons that are added later are applied when they are declared.
        """
        path = os.path.join(self.options.confdir, options.CONF_BASENAME)
        optmanager.load_paths(self.options, path)

    def install(self) -> None:
        """
        Start listening to the browser. Idempotent.
        """
        if self._installed:
            return
        self._installed = True
        tabs = self.browser.tabs
        tabs.on_created.add_listener(self._on_tab_created)
        tabs.on_activated.add_listener(self._on_tab_activated)
        tabs.on_removed.add_listener(self._on_tab_removed)
        self.browser.web_request.on_before_request.add_listener(
            self._on_before_request, NAVIGATION_FILTER, blocking=True
        )

    def uninstall(self) -> None:
        if not self._installed:
            return
        self._installed = False
        tabs = self.browser.tabs
        tabs.on_created.remove_listener(self._on_tab_created)
        tabs.on_activated.remove_listener(self._on_tab_activated)
        tabs.on_removed.remove_listener(self._on_tab_removed)
        self.browser.web_request.on_before_request.remove_listener(
            self._on_before_request
        )

    async def run(self) -> None:
        with asyncio_utils.install_exception_handler(self._asyncio_exception_handler):
            self.should_exit.clear()
            try:
                await self.running()
                await self.should_exit.wait()
            finally:
                # if running() was called, we also always want to call done().
                await self.done()

    def shutdown(self):
        """
        Shut down the master. This method is thread-safe.
        """
        self.event_loop.call_soon_threadsafe(self.should_exit.set)

    async def running(self) -> None:
        self.install()
        logger.debug(f"{HTTPSBYDEFAULT} running.")
        await self.addons.trigger_event(hooks.RunningHook())

    async def done(self) -> None:
        self.uninstall()
        await self.addons.trigger_event(hooks.DoneHook())
        if self._termlog_addon is not None:
            self._termlog_addon.uninstall()

    async def _on_tab_created(self, tab: Tab) -> None:
        await self.addons.trigger_event(hooks.TabCreatedHook(tab))

    async def _on_tab_activated(self, tab_id: int) -> None:
        await self.addons.trigger_event(hooks.TabActivatedHook(tab_id))

    async def _on_tab_removed(self, tab_id: int) -> None:
        await self.addons.trigger_event(hooks.TabRemovedHook(tab_id))

    async def _on_before_request(
        self, details: BeforeRequestDetails
    ) -> BlockingResponse | None:
        nav = Navigation(details)
        await self.addons.trigger_event(hooks.NavigationHook(nav))
        if nav.redirect_url:
            return BlockingResponse(redirect_url=nav.redirect_url)
        return None

    def _asyncio_exception_handler(self, loop, context) -> None:
        try:
            exc: Exception = context["exception"]
        except KeyError:
            logger.error(f"Unhandled asyncio error: {context}")
        else:
            task = context.get("task") or context.get("future")
            where = asyncio_utils.task_repr(task) if isinstance(task, asyncio.Task) else "task"
            logger.error(
                f"Unhandled error in {where}.",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
