"""
The domain suppression index.

Domains are stored label by label, starting with the top-level domain.
A node flagged as wildcard leaf excludes the domain spelled by the path to it
and all of its subdomains:

    >>> trie = build("example.com intranet.corp")
    >>> is_excluded("www.example.com", trie)
    True
    >>> is_excluded("corp", trie)
    False

Hostnames are matched as given. Callers pass the lower-cased, ASCII
hostnames produced by URL parsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field


@dataclass
class SuffixTrie:
    children: dict[str, SuffixTrie] = field(default_factory=dict)
    wildcard_leaf: bool = False

    def insert(self, domain: str) -> None:
        node = self
        for label in reversed(domain.split(".")):
            node = node.children.setdefault(label, SuffixTrie())
        node.wildcard_leaf = True

    def is_excluded(self, hostname: str) -> bool:
        node = self
        for label in reversed(hostname.split(".")):
            child = node.children.get(label)
            if child is None:
                return False
            if child.wildcard_leaf:
                return True
            node = child
        return False

    def __len__(self) -> int:
        """The number of domains stored in this trie."""
        return int(self.wildcard_leaf) + sum(len(c) for c in self.children.values())


def build(text: str | None) -> SuffixTrie:
    """
    Build a trie from a whitespace-separated list of domains.
    """
    trie = SuffixTrie()
    for domain in (text or "").split():
        trie.insert(domain)
    return trie


def is_excluded(hostname: str, trie: SuffixTrie) -> bool:
    return trie.is_excluded(hostname)
