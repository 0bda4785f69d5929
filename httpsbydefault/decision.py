"""
The redirect decision engine.

Everything in here is a pure function of the request, the tab's current state,
the tab timing ledger, the pending redirect of the tab and the suppression
index. Resolving the tab and recording the outcome is left to the caller,
see `httpsbydefault.addons.upgrade`.

We would like to only upgrade URLs that were typed without an explicit scheme,
but the browser does not expose the typed text. Instead, every navigation that
was not triggered by web content is a candidate: typed URLs, bookmarks,
history entries and auto-completed URLs.
"""

from __future__ import annotations

import re
from typing import NamedTuple
from typing import Protocol

from httpsbydefault import suffixtrie
from httpsbydefault.browser.types import BeforeRequestDetails
from httpsbydefault.browser.types import BLANK_URL
from httpsbydefault.browser.types import Tab
from httpsbydefault.browser.types import TAB_ID_NONE
from httpsbydefault.net import url as urlutils

RESERVED_TLDS = (".test", ".example", ".invalid", ".localhost")
"""Reserved top level DNS names, RFC 2606."""

RESUMED_TAB_THRESHOLD = 1.0
"""
Typing a domain name takes at least a second. A navigation that happens sooner
after the tab was activated is a discarded tab that is being restored.
"""

NEW_TAB_THRESHOLD = 0.3
"""
A navigation that happens this soon after the tab was created was opened from
outside: the command line, another extension, or a bookmark opened in a new tab.
"""

_ipv4_re = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")


class Decision(NamedTuple):
    upgrade: bool
    new_url: str | None = None
    reason: str = ""


class _TimingRecord(Protocol):
    created_at: float | None
    last_activated_at: float | None
    observed_creation: bool


class _TimingLedger(Protocol):
    def get(self, tab_id: int) -> _TimingRecord | None: ...


class _PendingRedirect(Protocol):
    requested_url: str
    redirected_request_id: str | None


def _skip(reason: str) -> Decision:
    return Decision(False, None, reason)


def upgrade_url(url: str) -> str:
    """
    Replace "http:" with "https:", leaving the rest of the URL untouched.
    """
    return url.replace(":", "s:", 1)


def should_redirect_to_https(requested_url: str, trie: suffixtrie.SuffixTrie) -> bool:
    """
    Determines whether the given http:-URL should be redirected to https:.
    """
    try:
        hostname = urlutils.hostname(requested_url)
    except ValueError:
        return False

    if "." not in hostname:
        # Any globally resolvable address has a TLD. Without one, there is
        # no way to obtain a certificate. E.g. localhost.
        return False

    if hostname.endswith(RESERVED_TLDS):
        return False

    if _ipv4_re.match(hostname) or (hostname.startswith("[") and hostname.endswith("]")):
        return False

    if trie.is_excluded(hostname):
        return False

    return True


def is_derived_url(current_url: str, requested_url: str) -> bool:
    """
    Determines whether the requested URL is based on the current URL of the tab,
    in which case the request must not be rewritten to https.
    """
    if current_url == requested_url:
        # tab.url is the URL of the currently loaded resource, so this is a reload.
        return True
    if not current_url.startswith("http"):
        # Not a http(s) URL, e.g. about:.
        return False
    try:
        cur = urlutils.parse(current_url)
        req = urlutils.parse(requested_url)
    except ValueError:
        return False

    if req.hostname == cur.hostname:
        # The user has already accessed the domain over http, and there is
        # not much gain in forcing a redirect to https. This covers editing
        # the current URL, as well as retrying http://example.com after
        # https://example.com turned out not to serve the expected content.
        return True

    if cur.scheme == "https":
        # Never downgrade from https to http.
        return False

    if (
        (len(req.pathname) > 1 or len(req.search) > 2 or len(req.hash) > 2)
        and req.pathname == cur.pathname
        and req.search == cur.search
        and req.hash == cur.hash
    ):
        # Everything after the domain name is non-empty and equal.
        # The user is probably correcting a misspelled domain name.
        return True

    return False


def precheck(details: BeforeRequestDetails, trie: suffixtrie.SuffixTrie) -> Decision | None:
    """
    The checks that need neither the tab nor the tracking state.
    Returns a negative decision, or None if the request is still a candidate.
    """
    if details.origin_url:
        # Likely a web-triggered navigation, or a reload of such a page.
        return _skip("navigation initiated by web content")
    if details.tab_id == TAB_ID_NONE:
        # Invisible navigation. Unlikely to be requested by the user.
        return _skip("no visible tab")
    if not should_redirect_to_https(details.url, trie):
        return _skip("host cannot or must not be upgraded")
    return None


def _check_blank_tab(
    details: BeforeRequestDetails, tab: Tab, ledger: _TimingLedger
) -> Decision | None:
    record = ledger.get(details.tab_id)
    if record is None or record.created_at is None:
        # The request was generated before the tab was created,
        # or the tab has been removed.
        return _skip("blank tab of unknown age")

    activated_at = record.last_activated_at
    if activated_at is None:
        # The activation was never observed, use the time of the last access instead.
        activated_at = tab.last_accessed

    if activated_at is not None:
        # Activating a tab while opening it does not resume it. Such tabs are
        # handled by the age check below. Tabs that were already open when we
        # started have no known creation time and get no such exemption.
        opened_active = (
            record.observed_creation
            and activated_at - record.created_at < NEW_TAB_THRESHOLD
        )
        resumed = details.timestamp - activated_at < RESUMED_TAB_THRESHOLD
        if resumed and not opened_active:
            return _skip("tab is being restored")
    if details.timestamp - record.created_at < NEW_TAB_THRESHOLD:
        return _skip("tab was just opened")
    return None


def decide(
    details: BeforeRequestDetails,
    tab: Tab | None,
    ledger: _TimingLedger,
    pending: _PendingRedirect | None,
    trie: suffixtrie.SuffixTrie,
) -> Decision:
    """
    Decide whether an intercepted top-level http: navigation is upgraded.

    `tab` is the current state of the requesting tab, or None if it could not
    be resolved. `pending` is the tab's outstanding upgrade, if any.
    """
    if skip := precheck(details, trie):
        return skip
    return decide_candidate(details, tab, ledger, pending)


def decide_candidate(
    details: BeforeRequestDetails,
    tab: Tab | None,
    ledger: _TimingLedger,
    pending: _PendingRedirect | None,
) -> Decision:
    """
    Like `decide`, for a request that has already passed `precheck`.
    """
    if tab is not None and tab.url == BLANK_URL:
        # Discarded tabs show about:blank and load their original URL again
        # once they are activated. That load must not be modified. This also
        # covers new tabs of unknown origin.
        if skip := _check_blank_tab(details, tab, ledger):
            return skip

    if tab is not None and is_derived_url(tab.url, details.url):
        # The user likely edited the current URL and pressed Enter.
        return _skip("derived from the current URL of the tab")

    new_url = upgrade_url(details.url)

    if pending is not None:
        if pending.redirected_request_id == details.request_id:
            # Redirects are triggered by a server response, and are
            # certainly not the result of a manually typed URL.
            return _skip("server redirect of an upgraded request")
        if (
            pending.requested_url == new_url
            and tab is not None
            and tab.status == "loading"
        ):
            # The previous upgrade hasn't loaded yet, and the same http URL
            # is requested again: the user is forcing plaintext.
            return _skip("plaintext retried during pending upgrade")

    return Decision(True, new_url, "upgrade")
