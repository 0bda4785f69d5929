from __future__ import annotations

import contextlib
import copy
import textwrap
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from typing import NamedTuple

import ruamel.yaml

from httpsbydefault import exceptions
from httpsbydefault.utils import signals
from httpsbydefault.utils import typecheck

"""
    The base implementation for Options, which doubles as the preference store.
"""

unset = object()


class Change(NamedTuple):
    """The value of a single option before and after an update."""

    old: Any
    new: Any


class _Option:
    __slots__ = ("name", "typespec", "value", "_default", "choices", "help")

    def __init__(
        self,
        name: str,
        typespec: type | object,  # object for Optional[x], which is not a type.
        default: Any,
        help: str,
        choices: Sequence[str] | None,
    ) -> None:
        typecheck.check_option_type(name, default, typespec)
        self.name = name
        self.typespec = typespec
        self._default = default
        self.value = unset
        self.help = textwrap.dedent(help).strip().replace("\n", " ")
        self.choices = choices

    def __repr__(self):
        return f"{self.current()} [{self.typespec}]"

    @property
    def default(self):
        return copy.deepcopy(self._default)

    def current(self) -> Any:
        if self.value is unset:
            v = self.default
        else:
            v = self.value
        return copy.deepcopy(v)

    def set(self, value: Any) -> None:
        typecheck.check_option_type(self.name, value, self.typespec)
        if self.choices is not None and value not in self.choices:
            raise exceptions.OptionsError(
                f"Invalid value for {self.name}: {value!r}. "
                f"Valid values are {', '.join(repr(c) for c in self.choices)}."
            )
        self.value = value

    def reset(self) -> None:
        self.value = unset

    def has_changed(self) -> bool:
        return self.current() != self.default

    def __eq__(self, other) -> bool:
        for i in self.__slots__:
            if getattr(self, i) != getattr(other, i):
                return False
        return True

    def __deepcopy__(self, _):
        o = _Option(self.name, self.typespec, self.default, self.help, self.choices)
        if self.has_changed():
            o.value = self.current()
        return o


def _sig_changed_spec(changes: dict[str, Change]) -> None:  # pragma: no cover
    ...  # expected function signature for OptManager.changed receivers.


class OptManager:
    """
    OptManager is the base class from which Options objects are derived.

    .changed is a Signal that triggers whenever options are updated. Receivers
    get a mapping from option name to a Change(old, new) tuple. If any
    receiver raises an exceptions.OptionsError exception, all changes are
    rolled back.

    Optmanager always returns a deep copy of options to ensure that
    mutation doesn't change the option state inadvertently.
    """

    def __init__(self) -> None:
        self.deferred: dict[str, Any] = {}
        self.changed = signals.SyncSignal(_sig_changed_spec)
        # Options must be the last attribute here - after that, we raise an
        # error for attribute assignment to unknown options.
        self._options: dict[str, Any] = {}

    def add_option(
        self,
        name: str,
        typespec: type | object,
        default: Any,
        help: str,
        choices: Sequence[str] | None = None,
    ) -> None:
        self._options[name] = _Option(name, typespec, default, help, choices)
        self.changed.send({name: Change(None, self._options[name].current())})

    @contextlib.contextmanager
    def rollback(self, updated: Iterable[str], reraise=False):
        old = copy.deepcopy(self._options)
        try:
            yield
        except exceptions.OptionsError as e:
            changes = {
                k: Change(self._options[k].current(), old[k].current())
                for k in updated
                if k in old and k in self._options
            }
            self.__dict__["_options"] = old
            self.changed.send(changes)
            if reraise:
                raise e

    async def get(self, defaults: Mapping[str, Any]) -> dict[str, Any]:
        """
        Read the stored values for the keys of `defaults`.
        Keys that are not known to this store are answered with their default.
        """
        return {
            k: self._options[k].current() if k in self._options else copy.deepcopy(v)
            for k, v in defaults.items()
        }

    def __getattr__(self, attr):
        if attr in self._options:
            return self._options[attr].current()
        else:
            raise AttributeError("No such option: %s" % attr)

    def __setattr__(self, attr, value):
        # We allow attributes to be set on the instance until we have an
        # _options attribute. After that, assignment is sent to the update
        # function, and will raise an error for unknown options.
        opts = self.__dict__.get("_options")
        if not opts:
            super().__setattr__(attr, value)
        else:
            self.update(**{attr: value})

    def __contains__(self, k):
        return k in self._options

    def update_known(self, **kwargs):
        """
        Update and set all known options from kwargs. Returns a dictionary
        of unknown options.
        """
        known, unknown = {}, {}
        for k, v in kwargs.items():
            if k in self._options:
                known[k] = v
            else:
                unknown[k] = v
        if known:
            with self.rollback(known.keys(), reraise=True):
                changes = {}
                for k, v in known.items():
                    old = self._options[k].current()
                    self._options[k].set(v)
                    changes[k] = Change(old, self._options[k].current())
                self.changed.send(changes)
        return unknown

    def update_defer(self, **kwargs):
        unknown = self.update_known(**kwargs)
        self.deferred.update(unknown)

    def update(self, **kwargs):
        u = self.update_known(**kwargs)
        if u:
            raise KeyError("Unknown options: %s" % ", ".join(u.keys()))

    def process_deferred(self) -> None:
        """
        Processes options that were deferred in previous calls to update_defer,
        and have since been added.
        """
        update = {k: v for k, v in self.deferred.items() if k in self._options}
        self.update(**update)
        for k in update.keys():
            del self.deferred[k]


def parse(text):
    if not text:
        return {}
    try:
        yaml = ruamel.yaml.YAML(typ="safe", pure=True)
        data = yaml.load(text)
    except ruamel.yaml.error.YAMLError as v:
        if hasattr(v, "problem_mark"):
            snip = v.problem_mark.get_snippet()
            raise exceptions.OptionsError(
                "Config error at line %s:\n%s\n%s"
                % (v.problem_mark.line + 1, snip, getattr(v, "problem", ""))
            )
        else:
            raise exceptions.OptionsError("Could not parse options.")
    if isinstance(data, str):
        raise exceptions.OptionsError("Config error - no keys found.")
    elif data is None:
        return {}
    return data


def load(opts: OptManager, text: str) -> None:
    """
    Load configuration from text, over-writing options already set in
    this object. Options that are not known yet are deferred until an
    addon adds them. May raise OptionsError if the config file is invalid.
    """
    data = parse(text)
    opts.update_defer(**data)


def load_paths(opts: OptManager, *paths: Path | str) -> None:
    """
    Load paths in order. Each path takes precedence over the previous
    path. Paths that don't exist are ignored, errors raise an
    OptionsError.
    """
    for p in paths:
        p = Path(p).expanduser()
        if p.exists() and p.is_file():
            with p.open(encoding="utf8") as f:
                try:
                    txt = f.read()
                except UnicodeDecodeError as e:
                    raise exceptions.OptionsError(f"Error reading {p}: {e}")
            try:
                load(opts, txt)
            except exceptions.OptionsError as e:
                raise exceptions.OptionsError(f"Error reading {p}: {e}")
