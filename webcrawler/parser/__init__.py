"""
Page parsing for the web crawler.
"""

from .page_parser import (
    HtmlPageParser,
    PageParser,
    ParseResult,
    count_words,
    extract_links,
    parse_document
)

__all__ = [
    'HtmlPageParser', 'PageParser', 'ParseResult',
    'count_words', 'extract_links', 'parse_document'
]
