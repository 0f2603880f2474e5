"""
Utility modules for the web crawler.
"""

from .clock import Clock, SystemClock, FakeClock
from .errors import (
    WebCrawlerError,
    FetchError,
    ConfigurationError,
    ProfilingError,
    WorkerPoolError
)
from .logging import setup_logging, get_logger

__all__ = [
    'Clock', 'SystemClock', 'FakeClock',
    'WebCrawlerError', 'FetchError', 'ConfigurationError',
    'ProfilingError', 'WorkerPoolError',
    'setup_logging', 'get_logger'
]
