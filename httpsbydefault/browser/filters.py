"""
Request filters, which restrict the requests a web request listener is called for.

URL patterns follow the browser's match pattern syntax:

    <all_urls>              any http(s), ws(s) or ftp URL
    *://*/*                 any http(s) or ws(s) URL
    http://*.example.com/*  example.com and all its subdomains, plaintext only
    https://example.com/    exactly this URL (the fragment is ignored)
"""

from __future__ import annotations

import functools
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

_pattern_re = re.compile(r"^(?P<scheme>\*|[a-z][a-z0-9+.-]*)://(?P<host>[^/]*)(?P<path>/.*)$")

ALL_URLS = "<all_urls>"
_WILDCARD_SCHEMES = "https?|wss?"
_ALL_URLS_SCHEMES = "https?|wss?|ftp"


@functools.lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern:
    """
    Compile a match pattern to a regular expression matching URLs without fragment.

    Raises:
        ValueError, if the pattern is malformed.
    """
    if pattern == ALL_URLS:
        return re.compile(rf"^(?:{_ALL_URLS_SCHEMES}):", re.IGNORECASE)

    m = _pattern_re.match(pattern)
    if not m:
        raise ValueError(f"Invalid match pattern: {pattern!r}")

    scheme = m["scheme"]
    if scheme == "*":
        scheme_re = f"(?:{_WILDCARD_SCHEMES})"
    else:
        scheme_re = re.escape(scheme)

    host = m["host"]
    if host == "*":
        host_re = "[^/]*"
    elif host.startswith("*."):
        host_re = rf"(?:[^/@]*\.)?{re.escape(host[2:])}(?::\d+)?"
    elif "*" in host:
        raise ValueError(f"Invalid host wildcard in match pattern: {pattern!r}")
    else:
        host_re = rf"{re.escape(host)}(?::\d+)?"

    path_re = ".*".join(re.escape(p) for p in m["path"].split("*"))
    return re.compile(rf"^{scheme_re}://(?:[^/@]*@)?{host_re}{path_re}$", re.IGNORECASE)


def matches_url(pattern: str, url: str) -> bool:
    url, _, _ = url.partition("#")
    return bool(compile_pattern(pattern).match(url))


class _HasRequestFields(Protocol):
    url: str
    tab_id: int
    type: str


@dataclass(frozen=True)
class RequestFilter:
    urls: Sequence[str] = (ALL_URLS,)
    types: Sequence[str] | None = None
    """Resource types, e.g. "main_frame". None matches all types."""
    tab_id: int | None = None
    """None matches requests of all tabs."""

    def __post_init__(self):
        if isinstance(self.urls, str):
            raise TypeError("RequestFilter.urls must be a sequence of patterns, not a string.")
        for pattern in self.urls:
            compile_pattern(pattern)

    def __call__(self, details: _HasRequestFields) -> bool:
        if self.tab_id is not None and details.tab_id != self.tab_id:
            return False
        if self.types is not None and details.type not in self.types:
            return False
        return any(matches_url(p, details.url) for p in self.urls)
