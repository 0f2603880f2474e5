"""
Crawl result model and its JSON writer.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, TextIO, Union

from webcrawler.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class CrawlResult:
    """Result of a crawl: ranked word counts and number of distinct pages visited."""
    word_counts: Mapping[str, int] = field(default_factory=dict)
    urls_visited: int = 0

    def __post_init__(self):
        # Freeze a private copy so callers cannot mutate the snapshot
        object.__setattr__(self, "word_counts", MappingProxyType(dict(self.word_counts)))

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form using the crawler's JSON field names."""
        return {
            "wordCounts": dict(self.word_counts),
            "urlsVisited": self.urls_visited
        }


class CrawlResultWriter:
    """Writes a CrawlResult as JSON."""

    def __init__(self, result: CrawlResult):
        self.result = result

    def write(self, path: Union[str, Path]) -> None:
        """
        Append the result to a file, creating it and its parent directories if needed.

        Args:
            path: Output file path
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'a', encoding='utf-8') as f:
            self.write_to(f)
        logger.info(f"Crawl result written to {output_path}")

    def write_to(self, stream: TextIO) -> None:
        """Write the result to an open text stream without closing it."""
        json.dump(self.result.to_dict(), stream, indent=2, ensure_ascii=False)
        stream.write("\n")
        stream.flush()
