"""
Command line entry point: crawl the pages named in a JSON configuration.
"""

import argparse
import sys
from typing import List, Optional

from webcrawler.config import ConfigurationLoader
from webcrawler.crawler import CrawlResultWriter, crawler_registry
from webcrawler.parser.page_parser import HtmlPageParser
from webcrawler.profiler.profiler import Profiler
from webcrawler.utils.errors import WebCrawlerError
from webcrawler.utils.logging import get_logger, setup_logging


logger = get_logger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Parallel web crawler: counts the most popular words across linked pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  webcrawler crawl.json
  webcrawler crawl.json --log-level DEBUG --log-file logs/crawler.log
        """
    )

    parser.add_argument(
        'config',
        help='Path to the JSON crawl configuration'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (overrides logLevel from the configuration)'
    )

    parser.add_argument(
        '--log-file',
        help='Also write logs to this file, rotated daily'
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one crawl.

    Returns:
        Process exit code: 0 on success, 1 on a crawler error
    """
    args = parse_arguments(argv)
    setup_logging(log_level=args.log_level or "INFO", log_file=args.log_file)

    page_parser = None
    try:
        configuration = ConfigurationLoader(args.config).load()
        if args.log_level is None and configuration.log_level != "INFO":
            setup_logging(log_level=configuration.log_level, log_file=args.log_file)

        profiler = Profiler()
        page_parser = HtmlPageParser(
            timeout=configuration.timeout,
            ignored_words=configuration.ignored_words
        )
        crawler = profiler.wrap(crawler_registry.create(
            configuration,
            page_parser=profiler.wrap(page_parser),
            clock=profiler.clock
        ))

        result = crawler.crawl(configuration.start_pages)

        writer = CrawlResultWriter(result)
        if configuration.result_path:
            writer.write(configuration.result_path)
        else:
            writer.write_to(sys.stdout)

        if configuration.profile_output_path:
            profiler.write_data(configuration.profile_output_path)
        else:
            profiler.write_data_to(sys.stdout)

        return 0

    except WebCrawlerError as e:
        logger.error(f"Crawl failed: {e.message}")
        return 1
    finally:
        if page_parser is not None:
            page_parser.close()


if __name__ == "__main__":
    sys.exit(main())
