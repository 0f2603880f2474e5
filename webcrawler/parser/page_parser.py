"""
Page fetching and word/link extraction.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Protocol, Sequence, Tuple, Union
from urllib.parse import urldefrag, urljoin, urlparse
from urllib.request import url2pathname

import requests
from bs4 import BeautifulSoup

from webcrawler.utils.errors import FetchError
from webcrawler.utils.logging import get_logger


logger = get_logger(__name__)

WHITESPACE = re.compile(r"\s+")
NON_WORD_CHARACTERS = re.compile(r"\W")

DEFAULT_USER_AGENT = "webcrawler/1.0"


@dataclass(frozen=True)
class ParseResult:
    """Words and outbound links of one page."""
    word_counts: Dict[str, int] = field(default_factory=dict)
    links: Tuple[str, ...] = ()


class PageParser(Protocol):
    """Fetches a URL and extracts its word counts and links."""

    def parse(self, url: str) -> ParseResult:
        ...


def count_words(text: str, ignored_words: Sequence[re.Pattern] = ()) -> Dict[str, int]:
    """
    Count words in visible page text.

    Tokens are split on whitespace, stripped of non-word characters and
    lowercased. Empty tokens and tokens fully matching an ignored pattern are
    dropped.
    """
    counts: Counter = Counter()
    for token in WHITESPACE.split(text):
        word = NON_WORD_CHARACTERS.sub("", token).lower()
        if not word:
            continue
        if any(pattern.fullmatch(word) for pattern in ignored_words):
            continue
        counts[word] += 1
    return dict(counts)


def extract_links(soup: BeautifulSoup, base_url: str) -> Tuple[str, ...]:
    """Absolute, fragment-free link targets of every <a href>, in document order."""
    links: List[str] = []
    seen = set()
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        target, _ = urldefrag(urljoin(base_url, href))
        if target and target not in seen:
            seen.add(target)
            links.append(target)
    return tuple(links)


def parse_document(url: str, html: str, ignored_words: Sequence[re.Pattern] = ()) -> ParseResult:
    """
    Parse an HTML document into a ParseResult.

    Args:
        url: URL the document was loaded from, used to resolve relative links
        html: Document source
        ignored_words: Patterns of words to leave out of the counts

    Returns:
        Word counts of the visible text and the document's links
    """
    soup = BeautifulSoup(html, "html.parser")
    links = extract_links(soup, url)

    # Script and style contents are not visible text
    for element in soup(["script", "style"]):
        element.decompose()
    text = soup.get_text(separator=" ")

    return ParseResult(word_counts=count_words(text, ignored_words), links=links)


class HtmlPageParser:
    """PageParser for http(s) and file URLs."""

    MEASURED_OPERATIONS: FrozenSet[str] = frozenset({"parse"})

    def __init__(
        self,
        timeout: Union[timedelta, float] = timedelta(seconds=10),
        ignored_words: Iterable[Union[str, re.Pattern]] = (),
        session: Optional[requests.Session] = None,
        user_agent: str = DEFAULT_USER_AGENT
    ):
        """
        Initialize page parser.

        Args:
            timeout: Per-request timeout
            ignored_words: Regular expressions of words to drop from counts
            session: Optional requests session to reuse
            user_agent: User-Agent header for HTTP requests
        """
        self.timeout = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        self.ignored_words = tuple(
            p if isinstance(p, re.Pattern) else re.compile(p) for p in ignored_words
        )
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", user_agent)

    def parse(self, url: str) -> ParseResult:
        """
        Fetch ``url`` and extract its words and links.

        Raises:
            FetchError: If the page cannot be retrieved
        """
        scheme = urlparse(url).scheme.lower()
        if scheme == "file":
            html = self._read_file(url)
        elif scheme in ("http", "https"):
            html = self._fetch_http(url)
            if html is None:
                return ParseResult()
        else:
            raise FetchError(f"Unsupported URL scheme: {scheme or '(none)'}", url)

        return parse_document(url, html, self.ignored_words)

    def _fetch_http(self, url: str) -> Optional[str]:
        """Return the page HTML, or None when the response is not an HTML document."""
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url, {"error_type": type(e).__name__}) from e

        content_type = (response.headers.get("content-type") or "").lower()
        if content_type and "html" not in content_type:
            logger.debug(f"Not parsing {url}: content type {content_type}")
            return None
        return response.text

    def _read_file(self, url: str) -> str:
        path = Path(url2pathname(urlparse(url).path))
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise FetchError(f"Failed to read {path}: {e}", url, {"error_type": type(e).__name__}) from e

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
