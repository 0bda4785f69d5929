from __future__ import annotations

import re
import urllib.parse
from typing import NamedTuple

# This regex extracts & splits the authority into host and port.
# Handles the edge case of IPv6 addresses containing colons.
_authority_re = re.compile(r"^(?P<host>[^:]*|\[.+\])(?::(?P<port>\d*))?$")

_special_schemes = {"http", "https", "ws", "wss", "ftp"}


class URL(NamedTuple):
    """
    The components of a URL, shaped like the browser's URL API:
    `search` and `hash` include their leading "?" and "#", and are empty if
    absent or empty. IPv6 hostnames keep their brackets.
    """

    scheme: str
    hostname: str
    port: int | None
    pathname: str
    search: str
    hash: str


def parse(url: str) -> URL:
    """
    Raises:
        ValueError, if the URL is not properly formatted.
    """
    parts = urllib.parse.urlsplit(url.strip())
    if not parts.scheme:
        raise ValueError(f"No scheme given: {url!r}")
    scheme = parts.scheme.lower()

    authority = parts.netloc.rpartition("@")[2]
    m = _authority_re.match(authority)
    if not m:
        raise ValueError(f"Invalid authority: {authority!r}")
    hostname = m["host"].lower()
    if scheme in _special_schemes and not hostname:
        raise ValueError(f"No hostname given: {url!r}")

    port = None
    if m["port"]:
        port = int(m["port"])
        if not 0 <= port <= 65535:
            raise ValueError(f"Invalid port: {port}")

    pathname = parts.path
    if not pathname and scheme in _special_schemes:
        pathname = "/"

    return URL(
        scheme=scheme,
        hostname=hostname,
        port=port,
        pathname=pathname,
        search=f"?{parts.query}" if parts.query else "",
        hash=f"#{parts.fragment}" if parts.fragment else "",
    )


def hostname(url: str) -> str:
    return parse(url).hostname
