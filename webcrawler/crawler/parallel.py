"""
Crawler that fans page fetches out over a work-stealing worker pool.
"""

from typing import Iterable

from webcrawler.concurrent.worker_pool import WorkerPool
from webcrawler.utils.errors import FetchError
from webcrawler.utils.logging import get_logger
from .base import WebCrawler
from .result import CrawlResult
from .state import SharedCrawlState
from .task import CrawlTask


logger = get_logger(__name__)


class ParallelWebCrawler(WebCrawler):
    """
    Crawls with up to ``parallelism`` concurrent page fetches.

    Each call to ``crawl()`` owns a fresh pool and fresh shared state, so
    concurrent calls on one instance do not interfere.

    The first failed fetch stops the crawl for every start page. Fetches
    already in progress finish and nothing new is fetched; ``crawl()`` then
    re-raises the failure.
    """

    def crawl(self, start_urls: Iterable[str]) -> CrawlResult:
        start_urls = list(start_urls)
        deadline = self.clock.now() + self.timeout
        state = SharedCrawlState(deadline=deadline)

        logger.info(
            f"Starting parallel crawl of {len(start_urls)} start pages "
            f"(max_depth={self.max_depth}, timeout={self.timeout})"
        )

        with WorkerPool(self.parallelism) as pool:
            handles = [
                pool.submit(CrawlTask(
                    url=url,
                    remaining_depth=self.max_depth,
                    state=state,
                    page_parser=self.page_parser,
                    clock=self.clock,
                    ignored_urls=self.ignored_urls
                ))
                for url in start_urls
            ]
            try:
                pool.join_all(handles)
            except FetchError as e:
                logger.error(f"Crawl aborted: {e.message}")
                raise
            finally:
                logger.debug(f"Pool statistics: {pool.get_pool_stats()}")

        result = self._build_result(state.word_counts.snapshot(), len(state.visited_urls))
        logger.info(
            f"Parallel crawl finished: {result.urls_visited} URLs visited, "
            f"{len(state.word_counts)} distinct words"
        )
        return result
