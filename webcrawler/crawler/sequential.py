"""
Single-threaded reference crawler.
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, Set

from webcrawler.utils.logging import get_logger
from .base import WebCrawler
from .result import CrawlResult


logger = get_logger(__name__)


class SequentialWebCrawler(WebCrawler):
    """Depth-first crawl on the calling thread with the same admission rules as the parallel crawler."""

    def crawl(self, start_urls: Iterable[str]) -> CrawlResult:
        deadline = self.clock.now() + self.timeout
        counts: Counter = Counter()
        visited: Set[str] = set()

        for url in start_urls:
            self._crawl_internal(url, deadline, self.max_depth, counts, visited)

        logger.info(f"Sequential crawl finished: {len(visited)} URLs visited")
        return self._build_result(counts, len(visited))

    def _crawl_internal(self, url: str, deadline: datetime, remaining_depth: int,
                        counts: Counter, visited: Set[str]) -> None:
        if remaining_depth == 0 or self.clock.now() >= deadline:
            return
        if any(pattern.fullmatch(url) for pattern in self.ignored_urls):
            return
        if url in visited:
            return

        visited.add(url)
        result = self.page_parser.parse(url)
        counts.update(result.word_counts)

        for link in result.links:
            self._crawl_internal(link, deadline, remaining_depth - 1, counts, visited)
