"""
Parallel web crawler.

Crawls outward from a set of start pages up to a depth and time budget,
counting words across every page visited and reporting the most popular
ones. Page fetches run concurrently on a work-stealing worker pool; calls
to the crawler and page parser can be timed with the profiler.
"""

__version__ = "1.0.0"

from .config import ConfigurationLoader, CrawlerConfiguration, load_config
from .crawler import (
    CrawlResult,
    CrawlResultWriter,
    ParallelWebCrawler,
    SequentialWebCrawler,
    WebCrawler,
    crawler_registry
)
from .parser import HtmlPageParser, PageParser, ParseResult
from .profiler import Profiler
from .utils.errors import (
    ConfigurationError,
    FetchError,
    ProfilingError,
    WebCrawlerError,
    WorkerPoolError
)

__all__ = [
    'ConfigurationLoader', 'CrawlerConfiguration', 'load_config',
    'CrawlResult', 'CrawlResultWriter', 'ParallelWebCrawler',
    'SequentialWebCrawler', 'WebCrawler', 'crawler_registry',
    'HtmlPageParser', 'PageParser', 'ParseResult',
    'Profiler',
    'ConfigurationError', 'FetchError', 'ProfilingError',
    'WebCrawlerError', 'WorkerPoolError'
]
