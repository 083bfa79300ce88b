#!/usr/bin/env python3
"""
Main entry point for the image crawler.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from image_crawler import __version__
from image_crawler.utils.config import Config, load_config, validate_config
from image_crawler.utils.logger import setup_logging
from image_crawler.utils.monitoring import CrawlerMonitor, MetricsCollector
from image_crawler.crawler.fetcher import WebFetcher
from image_crawler.crawler.scheduler import CrawlerScheduler


class CrawlerApp:
    """Main application class for the image crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    def run(self, config: Config, dry_run: bool = False) -> int:
        """Run the image crawler."""
        setup_logging(config.logging)

        self.logger.info("=== IMAGE CRAWLER STARTING ===")
        self.logger.info(f"Seed URL: {config.crawler.seed_url}")

        if dry_run:
            self.logger.info("DRY RUN MODE: No actual crawling will be performed")
            return self._dry_run(config)

        metrics = MetricsCollector(
            enable_prometheus=config.monitoring.metrics_enabled,
            prometheus_port=config.monitoring.prometheus_port
        )
        metrics.start_prometheus_server()

        self.scheduler = CrawlerScheduler(config, monitor=CrawlerMonitor(metrics))
        try:
            self.scheduler.run()
        finally:
            self.scheduler.close()
            self.logger.info("=== IMAGE CRAWLER FINISHED ===")

        return 0

    def _dry_run(self, config: Config) -> int:
        """Check the configuration and fetch the seed URL once."""
        self.logger.info("Testing fetcher configuration...")
        with WebFetcher(
            user_agent=config.crawler.user_agent,
            request_timeout=config.crawler.request_timeout,
            fail_on_http_error=config.crawler.fail_on_http_error
        ) as fetcher:
            result = fetcher.fetch(config.crawler.seed_url)

        if result.ok:
            self.logger.info(f"✓ Test fetch successful: {result.status_code} "
                             f"({len(result.content or b'')} bytes)")
        else:
            self.logger.warning(f"✗ Test fetch failed: {result.error}")

        self.logger.info("Dry run completed")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bounded-depth concurrent image crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py https://example.com              # Crawl with defaults
  python main.py --config config.yaml             # Seed and settings from a file
  python main.py https://example.com --max-depth 2 --workers 4
  python main.py --config config.yaml --dry-run   # Test configuration only
        """
    )

    parser.add_argument(
        'seed_url',
        nargs='?',
        help='URL to start crawling from (overrides crawler.seed_url)'
    )

    parser.add_argument(
        '--config',
        help='Path to a YAML configuration file'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum link depth, the seed page being depth 1'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help='Number of worker threads'
    )

    parser.add_argument(
        '--output-dir',
        help='Directory images are written to'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Test configuration without actually crawling'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Image Crawler {__version__}'
    )

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return a copy of config with command-line overrides applied."""
    overrides = {}
    if args.seed_url:
        overrides['seed_url'] = args.seed_url
    if args.max_depth is not None:
        overrides['max_depth'] = args.max_depth
    if args.workers is not None:
        overrides['max_workers'] = args.workers
    if args.output_dir:
        overrides['output_dir'] = args.output_dir

    if not overrides:
        return config

    crawler_config = dataclasses.replace(config.crawler, **overrides)
    return validate_config(dataclasses.replace(config, crawler=crawler_config))


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.config and not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        return 1

    try:
        config = apply_overrides(load_config(args.config), args)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    if not config.crawler.seed_url:
        print("Error: No seed URL given. Pass one as an argument or set crawler.seed_url.")
        return 1

    app = CrawlerApp()
    try:
        return app.run(config, dry_run=args.dry_run)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
