"""
Recursive crawl task executed on the worker pool.
"""

import re
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from webcrawler.concurrent.models import PoolTask
from webcrawler.concurrent.worker_pool import TaskContext
from webcrawler.parser.page_parser import PageParser
from webcrawler.utils.clock import Clock
from webcrawler.utils.logging import get_logger
from .state import SharedCrawlState


logger = get_logger(__name__)


@dataclass(frozen=True)
class CrawlTask(PoolTask):
    """
    Visit one URL with ``remaining_depth`` hops left.

    A task runs once: admission checks, atomic claim of the URL, fetch,
    merge into the shared counts, then one forked child per outbound link.
    Fetch errors are not caught here; they fail the task's subtree.
    """
    url: str
    remaining_depth: int
    state: SharedCrawlState
    page_parser: PageParser
    clock: Clock
    ignored_urls: Tuple[re.Pattern, ...] = ()

    def compute(self, context: TaskContext) -> None:
        reason = self.skip_reason()
        if reason is not None:
            logger.debug(f"Skipping {self.url}: {reason}")
            return

        # Only the task that wins the insert fetches the page
        if not self.state.claim(self.url):
            logger.debug(f"Skipping {self.url}: claimed by another task")
            return

        result = self.page_parser.parse(self.url)
        self.state.merge(result.word_counts)

        for link in result.links:
            context.fork(self.child(link))

        logger.debug(
            f"Visited {self.url} (depth {self.remaining_depth}): "
            f"{len(result.word_counts)} distinct words, {len(result.links)} links"
        )

    def skip_reason(self) -> Optional[str]:
        """
        Return why this task must not fetch its URL, or None to proceed.

        Side-effect free; checks run in a fixed order.
        """
        if self.remaining_depth == 0:
            return "depth exhausted"
        if self.clock.now() >= self.state.deadline:
            return "deadline passed"
        if any(pattern.fullmatch(self.url) for pattern in self.ignored_urls):
            return "ignored"
        if self.url in self.state.visited_urls:
            return "already visited"
        return None

    def child(self, link: str) -> "CrawlTask":
        """Task for an outbound link, one hop deeper, sharing this crawl's state."""
        return replace(self, url=link, remaining_depth=self.remaining_depth - 1)

    def __repr__(self) -> str:
        return f"CrawlTask(url={self.url!r}, remaining_depth={self.remaining_depth})"
