"""
Crawl configuration loading and validation.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, TextIO, Tuple, Union

from jsonschema import validate, ValidationError

from webcrawler.concurrent.worker_pool import hardware_parallelism
from webcrawler.utils.errors import ConfigurationError
from webcrawler.utils.logging import get_logger


logger = get_logger(__name__)

IMPLEMENTATIONS = ("parallel", "sequential")

# Configuration schema for validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "startPages": {
            "type": "array",
            "items": {"type": "string", "minLength": 1}
        },
        "ignoredUrls": {
            "type": "array",
            "items": {"type": "string"}
        },
        "ignoredWords": {
            "type": "array",
            "items": {"type": "string"}
        },
        "parallelism": {"type": "integer", "minimum": 1},
        "implementationOverride": {"type": "string", "enum": ["", *IMPLEMENTATIONS]},
        "maxDepth": {"type": "integer", "minimum": 0},
        "timeoutSeconds": {"type": "number", "minimum": 0},
        "popularWordCount": {"type": "integer", "minimum": 0},
        "profileOutputPath": {"type": "string"},
        "resultPath": {"type": "string"},
        "logLevel": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        }
    },
    "additionalProperties": False
}


def compile_patterns(patterns: Iterable[Union[str, re.Pattern]], kind: str = "pattern") -> Tuple[re.Pattern, ...]:
    """
    Compile regular expressions, leaving already compiled ones as they are.

    Raises:
        ConfigurationError: If any pattern is not a valid regular expression
    """
    compiled = []
    for pattern in patterns:
        if isinstance(pattern, re.Pattern):
            compiled.append(pattern)
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigurationError(
                f"Invalid {kind} regular expression {pattern!r}: {e}",
                {"pattern": pattern}
            ) from e
    return tuple(compiled)


@dataclass(frozen=True)
class CrawlerConfiguration:
    """Settings for one crawler run."""
    start_pages: Tuple[str, ...] = ()
    ignored_urls: Tuple[re.Pattern, ...] = ()
    ignored_words: Tuple[re.Pattern, ...] = ()
    parallelism: int = field(default_factory=hardware_parallelism)
    implementation_override: str = ""
    max_depth: int = 0
    timeout: timedelta = timedelta(seconds=1)
    popular_word_count: int = 0
    profile_output_path: str = ""
    result_path: str = ""
    log_level: str = "INFO"


class ConfigurationLoader:
    """Reads a JSON crawl configuration and validates it against CONFIG_SCHEMA."""

    def __init__(self, config_path: Union[str, Path]):
        self.config_path = Path(config_path)

    def load(self) -> CrawlerConfiguration:
        """
        Load configuration from the file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if not self.config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}",
                {"path": str(self.config_path)}
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            configuration = self.read(f)

        logger.info(f"Configuration loaded and validated from {self.config_path}")
        return configuration

    @staticmethod
    def read(stream: TextIO) -> CrawlerConfiguration:
        """
        Read configuration from an open text stream.

        Raises:
            ConfigurationError: If the document is not valid JSON or fails validation
        """
        try:
            config_data = json.load(stream)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Configuration is not valid JSON: {e}", {"error": str(e)}) from e

        ConfigurationLoader.validate_config(config_data)
        return ConfigurationLoader._dict_to_config(config_data)

    @staticmethod
    def validate_config(config_data: Dict[str, Any]) -> None:
        """Validate configuration data against schema."""
        try:
            validate(instance=config_data, schema=CONFIG_SCHEMA)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.message}",
                {"error": e.message, "path": list(e.absolute_path)}
            ) from e

    @staticmethod
    def _dict_to_config(data: Dict[str, Any]) -> CrawlerConfiguration:
        """Convert validated dictionary to CrawlerConfiguration."""
        defaults = CrawlerConfiguration()
        return CrawlerConfiguration(
            start_pages=tuple(data.get("startPages", ())),
            ignored_urls=compile_patterns(data.get("ignoredUrls", ()), "ignored URL"),
            ignored_words=compile_patterns(data.get("ignoredWords", ()), "ignored word"),
            parallelism=data.get("parallelism", defaults.parallelism),
            implementation_override=data.get("implementationOverride", ""),
            max_depth=data.get("maxDepth", defaults.max_depth),
            timeout=timedelta(seconds=data.get("timeoutSeconds", defaults.timeout.total_seconds())),
            popular_word_count=data.get("popularWordCount", defaults.popular_word_count),
            profile_output_path=data.get("profileOutputPath", ""),
            result_path=data.get("resultPath", ""),
            log_level=data.get("logLevel", defaults.log_level)
        )


def load_config(config_path: Union[str, Path]) -> CrawlerConfiguration:
    """Load configuration from file."""
    return ConfigurationLoader(config_path).load()
