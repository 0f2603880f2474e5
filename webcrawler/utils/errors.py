"""
Custom exception classes for the web crawler.
"""

from typing import Optional, Dict, Any


class WebCrawlerError(Exception):
    """Base exception for all web crawler errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FetchError(WebCrawlerError):
    """Exception raised when a page cannot be retrieved or parsed."""

    def __init__(self, message: str, url: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"url": url, **(details or {})})
        self.url = url


class ConfigurationError(WebCrawlerError):
    """Exception raised for invalid crawl settings or configuration files."""
    pass


class ProfilingError(WebCrawlerError):
    """Exception raised when a component cannot be profiled."""
    pass


class WorkerPoolError(WebCrawlerError):
    """Exception raised for invalid worker pool usage."""
    pass
