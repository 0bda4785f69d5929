import asyncio

import httpsbydefault.master
import httpsbydefault.options
from httpsbydefault import hooks
from httpsbydefault.test import tbrowser


class context:
    """
    A context for testing addons, which sets up a master with an in-memory
    browser so handlers can run as they would within httpsbydefault. The
    context also provides a number of helper methods for common testing scenarios.
    """

    def __init__(self, *addons, options=None, browser=None):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = asyncio.new_event_loop()

        options = options or httpsbydefault.options.Options()
        self.browser: tbrowser.TBrowser = browser or tbrowser.TBrowser()
        self.master = httpsbydefault.master.Master(
            options, self.browser, event_loop=loop
        )
        self.options = self.master.options

        for a in addons:
            self.master.addons.add(a)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        return False

    @property
    def clock(self) -> tbrowser.TClock:
        return self.browser.clock

    async def running(self):
        """
        Install the browser listeners and trigger the running event.
        """
        await self.master.running()

    async def done(self):
        await self.master.done()

    def configure(self, addon, **kwargs):
        """
        A helper for testing configure methods. Modifies the registered
        Options object with the given keyword arguments, then calls the
        configure method on the addon with the updated value.
        """
        if addon not in self.master.addons:
            self.master.addons.register(addon)
        with self.options.rollback(kwargs.keys(), reraise=True):
            if kwargs:
                self.options.update(**kwargs)
            else:
                self.master.addons.invoke_addon_sync(addon, hooks.ConfigureHook({}))
