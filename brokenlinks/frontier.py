"""Breadth-first frontier with duplicate suppression and a discovery cap."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Optional, Set

from .link import CrawlLink


class Frontier:
    """FIFO queue of pending links plus the set of every URL ever admitted.

    ``seen`` only grows, and never beyond ``max_links`` entries. A URL is
    added to it at the moment it is admitted, so the first offer wins and
    later duplicates (same page or another page) are dropped.
    """

    def __init__(self, max_links: int):
        if max_links < 1:
            raise ValueError("max_links must be at least 1")
        self.max_links = max_links
        self._pending: Deque[CrawlLink] = deque()
        self._seen: Set[str] = set()
        self.dequeued = 0

    @property
    def seen(self) -> frozenset[str]:
        return frozenset(self._seen)

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    @property
    def is_full(self) -> bool:
        return len(self._seen) >= self.max_links

    def __len__(self) -> int:
        return len(self._pending)

    def seed(self, urls: Iterable[str]) -> int:
        """Admit the seed URLs in order, without a parent."""
        return self.offer(CrawlLink(url=url) for url in urls)

    def offer(self, links: Iterable[CrawlLink]) -> int:
        """Append unseen links until the cap is reached; return how many were admitted."""
        admitted = 0
        for link in links:
            if self.is_full:
                break
            if link.url in self._seen:
                continue
            self._seen.add(link.url)
            self._pending.append(link)
            admitted += 1
        return admitted

    def dequeue(self) -> Optional[CrawlLink]:
        """Pop the oldest pending link, or return ``None`` when the frontier is drained."""
        if not self._pending:
            return None
        self.dequeued += 1
        return self._pending.popleft()
