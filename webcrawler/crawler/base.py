"""
Base crawler interface and crawler registry.
"""

import re
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from webcrawler.concurrent.worker_pool import hardware_parallelism
from webcrawler.config import CrawlerConfiguration, compile_patterns
from webcrawler.parser.page_parser import PageParser
from webcrawler.utils.clock import Clock, SystemClock
from webcrawler.utils.errors import ConfigurationError
from webcrawler.utils.logging import get_logger
from .result import CrawlResult
from .word_counts import sort_word_counts


logger = get_logger(__name__)


class WebCrawler(ABC):
    """Abstract base class for crawler implementations."""

    MEASURED_OPERATIONS: FrozenSet[str] = frozenset({"crawl"})

    def __init__(
        self,
        page_parser: PageParser,
        clock: Optional[Clock] = None,
        timeout: timedelta = timedelta(seconds=1),
        popular_word_count: int = 0,
        max_depth: int = 0,
        ignored_urls: Iterable[Union[str, re.Pattern]] = (),
        parallelism: Optional[int] = None
    ):
        """
        Initialize crawler.

        Args:
            page_parser: Fetches and parses single pages
            clock: Time source for the crawl deadline
            timeout: Wall-clock budget measured from the start of ``crawl()``
            popular_word_count: Number of words kept in the result
            max_depth: Maximum number of hops from a start page, inclusive
            ignored_urls: Regular expressions of URLs never fetched
            parallelism: Requested worker count, defaults to hardware parallelism

        Raises:
            ConfigurationError: If any setting is out of range
        """
        if parallelism is None:
            parallelism = self.get_max_parallelism()

        if timeout < timedelta(0):
            raise ConfigurationError("timeout must be non-negative", {"timeout": str(timeout)})
        if max_depth < 0:
            raise ConfigurationError("max_depth must be non-negative", {"max_depth": max_depth})
        if popular_word_count < 0:
            raise ConfigurationError(
                "popular_word_count must be non-negative",
                {"popular_word_count": popular_word_count}
            )
        if parallelism < 1:
            raise ConfigurationError("parallelism must be at least 1", {"parallelism": parallelism})

        self.page_parser = page_parser
        self.clock = clock or SystemClock()
        self.timeout = timeout
        self.popular_word_count = popular_word_count
        self.max_depth = max_depth
        self.ignored_urls = compile_patterns(ignored_urls, "ignored URL")
        self.parallelism = parallelism

    @abstractmethod
    def crawl(self, start_urls: Iterable[str]) -> CrawlResult:
        """
        Crawl outward from the start URLs.

        Args:
            start_urls: Seed URLs, each at full depth

        Returns:
            Ranked word counts and the number of distinct URLs visited
        """
        pass

    def get_max_parallelism(self) -> int:
        """Maximum useful parallelism for this crawler."""
        return hardware_parallelism()

    def _build_result(self, word_counts: Mapping[str, int], urls_visited: int) -> CrawlResult:
        if not word_counts:
            return CrawlResult(word_counts={}, urls_visited=urls_visited)
        return CrawlResult(
            word_counts=sort_word_counts(word_counts, self.popular_word_count),
            urls_visited=urls_visited
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(max_depth={self.max_depth}, timeout={self.timeout}, "
            f"parallelism={self.parallelism})"
        )


class CrawlerRegistry:
    """Registry of crawler implementations by name."""

    def __init__(self):
        """Initialize empty crawler registry."""
        self._crawlers: Dict[str, type] = {}

    def register(self, name: str, crawler_class: type) -> None:
        """
        Register a crawler class.

        Args:
            name: Implementation name (e.g., 'parallel', 'sequential')
            crawler_class: Class that extends WebCrawler

        Raises:
            ConfigurationError: If the class is not a WebCrawler
        """
        if not isinstance(crawler_class, type) or not issubclass(crawler_class, WebCrawler):
            raise ConfigurationError(
                "Crawler class must extend WebCrawler",
                {"crawler_name": name, "crawler_class": str(crawler_class)}
            )

        self._crawlers[name] = crawler_class
        logger.debug(f"Crawler registered: {name} -> {crawler_class.__name__}")

    def get_crawler_class(self, name: str) -> type:
        """
        Look up a registered crawler class.

        Raises:
            ConfigurationError: If no crawler is registered under ``name``
        """
        if name not in self._crawlers:
            raise ConfigurationError(
                f"Crawler '{name}' is not registered",
                {"available_crawlers": self.list_crawlers()}
            )
        return self._crawlers[name]

    def create(
        self,
        configuration: CrawlerConfiguration,
        page_parser: PageParser,
        clock: Optional[Clock] = None,
        default: str = "parallel"
    ) -> WebCrawler:
        """
        Create the crawler selected by a configuration.

        Args:
            configuration: Crawl settings; ``implementation_override`` picks the class
            page_parser: Page parser handed to the crawler
            clock: Optional time source
            default: Implementation used when no override is set

        Returns:
            Configured crawler instance
        """
        name = configuration.implementation_override or default
        crawler_class = self.get_crawler_class(name)
        logger.info(f"Using {name} crawler implementation")
        return crawler_class(
            page_parser=page_parser,
            clock=clock,
            timeout=configuration.timeout,
            popular_word_count=configuration.popular_word_count,
            max_depth=configuration.max_depth,
            ignored_urls=configuration.ignored_urls,
            parallelism=configuration.parallelism
        )

    def list_crawlers(self) -> List[str]:
        """List all registered crawler names."""
        return sorted(self._crawlers)
