"""
Mutable state shared by every task of one crawl.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

from webcrawler.concurrent.thread_safe import ThreadSafeCounterMap, ThreadSafeSet


@dataclass(frozen=True)
class SharedCrawlState:
    """
    Aggregation state for a single ``crawl()`` call.

    The deadline is fixed at construction. ``word_counts`` and ``visited_urls``
    are the only structures written concurrently; both serialize their own
    read-modify-write operations.
    """
    deadline: datetime
    word_counts: ThreadSafeCounterMap = field(default_factory=ThreadSafeCounterMap)
    visited_urls: ThreadSafeSet = field(default_factory=ThreadSafeSet)

    def claim(self, url: str) -> bool:
        """
        Atomically mark ``url`` as visited.

        Returns:
            True for exactly one caller per URL
        """
        return self.visited_urls.add(url)

    def merge(self, page_counts: Mapping[str, int]) -> None:
        """Add one page's word counts into the crawl totals."""
        self.word_counts.add_all(page_counts)
