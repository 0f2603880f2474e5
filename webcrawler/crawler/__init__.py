"""
Crawler implementations and supporting types.
"""

from .base import CrawlerRegistry, WebCrawler
from .parallel import ParallelWebCrawler
from .result import CrawlResult, CrawlResultWriter
from .sequential import SequentialWebCrawler
from .state import SharedCrawlState
from .task import CrawlTask
from .word_counts import sort_word_counts

# Global crawler registry instance
crawler_registry = CrawlerRegistry()
crawler_registry.register("parallel", ParallelWebCrawler)
crawler_registry.register("sequential", SequentialWebCrawler)

__all__ = [
    'WebCrawler', 'ParallelWebCrawler', 'SequentialWebCrawler',
    'CrawlerRegistry', 'crawler_registry',
    'CrawlResult', 'CrawlResultWriter', 'CrawlTask', 'SharedCrawlState',
    'sort_word_counts'
]
