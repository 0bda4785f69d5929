from __future__ import annotations

import re
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import is_dataclass
from typing import Any
from typing import ClassVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpsbydefault.browser.types import Navigation
    from httpsbydefault.browser.types import Tab
    from httpsbydefault.optmanager import Change


class Hook:
    name: ClassVar[str]

    def args(self) -> list[Any]:
        args = []
        for field in fields(self):  # type: ignore[arg-type]
            args.append(getattr(self, field.name))
        return args

    def __new__(cls, *args, **kwargs):
        if cls is Hook:
            raise TypeError("Hook may not be instantiated directly.")
        if not is_dataclass(cls):
            raise TypeError("Subclass is not a dataclass.")
        return super().__new__(cls)

    def __init_subclass__(cls, **kwargs):
        # initialize .name attribute. TabCreatedHook -> tab_created
        if cls.__dict__.get("name", None) is None:
            name = cls.__name__.replace("Hook", "")
            cls.name = re.sub("(?!^)([A-Z]+)", r"_\1", name).lower()
        if cls.name in all_hooks:
            other = all_hooks[cls.name]
            warnings.warn(
                f"Two conflicting event classes for {cls.name}: {cls} and {other}",
                RuntimeWarning,
            )
        if cls.name == "":
            return  # don't register Hook class.
        all_hooks[cls.name] = cls

        # define a custom hash and __eq__ function so that events are hashable and not comparable.
        cls.__hash__ = object.__hash__  # type: ignore
        cls.__eq__ = object.__eq__  # type: ignore


all_hooks: dict[str, type[Hook]] = {}


@dataclass
class ConfigureHook(Hook):
    """
    Called when configuration changes. The updated argument maps the names
    of all changed options to a Change(old, new) tuple, so it can be used
    like a set of option names.
    """

    updated: Mapping[str, Change]


@dataclass
class DoneHook(Hook):
    """
    Called when the addon shuts down, either by being removed from the
    master, or when the master itself shuts down. All tracking state should
    be released here.
    """


@dataclass
class RunningHook(Hook):
    """
    Called when the master is completely up and running. At this point,
    you can expect all addons to be loaded, all options to be set and
    the browser listeners to be installed.
    """


@dataclass
class TabCreatedHook(Hook):
    """
    A tab has been created. The tab may already be active.
    """

    tab: Tab


@dataclass
class TabActivatedHook(Hook):
    """
    A tab has become the active tab of its window.
    """

    tab_id: int


@dataclass
class TabRemovedHook(Hook):
    """
    A tab has been closed. Any per-tab state must be released.
    """

    tab_id: int


@dataclass
class NavigationHook(Hook):
    """
    A top-level plaintext navigation is about to be sent.

    Addons may set `nav.redirect_url` to send the browser to a different URL
    instead. The request proceeds unmodified if no addon does so.
    """

    nav: Navigation
