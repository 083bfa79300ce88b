"""
Crawl coordinator: owns the frontier, the visited set and the worker pool,
and blocks until the crawl is drained.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .url_frontier import FrontierQueue, VisitedSet, WorkItem
from .fetcher import WebFetcher
from .parser import ContentParser
from .worker import CrawlWorker
from ..storage.image_store import ImageDownloader
from ..utils.config import Config
from ..utils.monitoring import CrawlerMonitor


@dataclass
class CrawlStats:
    """Statistics for one crawl."""
    seed_url: str
    start_time: float
    end_time: Optional[float] = None
    urls_visited: int = 0
    pages_crawled: int = 0
    images_downloaded: int = 0
    bytes_written: int = 0
    fetch_errors: int = 0
    download_errors: int = 0
    unexpected_errors: int = 0
    skipped_depth: int = 0
    skipped_visited: int = 0

    @property
    def elapsed_time(self) -> float:
        return (self.end_time or time.time()) - self.start_time

    @property
    def errors(self) -> int:
        return self.fetch_errors + self.download_errors + self.unexpected_errors


class CrawlerScheduler:
    """
    Coordinates the crawler components for one or more sequential crawls.

    Collaborators can be injected; anything not given is built from the
    configuration.
    """

    def __init__(self, config: Config,
                 fetcher: Optional[WebFetcher] = None,
                 parser: Optional[ContentParser] = None,
                 downloader: Optional[ImageDownloader] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        crawler_config = config.crawler
        self.fetcher = fetcher or WebFetcher(
            user_agent=crawler_config.user_agent,
            request_timeout=crawler_config.request_timeout,
            fail_on_http_error=crawler_config.fail_on_http_error
        )
        self.parser = parser or ContentParser(
            resolve_relative_urls=crawler_config.resolve_relative_urls
        )
        self.downloader = downloader or ImageDownloader(
            self.fetcher,
            output_dir=crawler_config.output_dir,
            unique_filenames=crawler_config.unique_filenames
        )
        self.monitor = monitor or CrawlerMonitor()

        # Per-crawl state, rebuilt by run()
        self.frontier: Optional[FrontierQueue] = None
        self.visited: Optional[VisitedSet] = None
        self.workers: List[CrawlWorker] = []

        self.is_running = False
        self._state_lock = threading.Lock()
        self._reporter: Optional[threading.Thread] = None
        self._reporter_stop = threading.Event()

    def run(self, seed_url: Optional[str] = None) -> CrawlStats:
        """
        Crawl from seed_url until no work remains.

        Args:
            seed_url: Starting URL (defaults to the configured seed)

        Returns:
            CrawlStats for this crawl
        """
        seed_url = seed_url or self.config.crawler.seed_url
        if not seed_url:
            raise ValueError("A seed URL must be provided")

        with self._state_lock:
            if self.is_running:
                raise RuntimeError("Crawler is already running")
            self.is_running = True

        crawler_config = self.config.crawler
        baseline = self._snapshot()
        stats = CrawlStats(seed_url=seed_url, start_time=time.time())
        self.monitor.reset_clock()

        self.frontier = FrontierQueue(crawler_config.queue_capacity, consumers=crawler_config.max_workers)
        self.visited = VisitedSet()

        try:
            self.logger.info(f"Starting crawl from {seed_url}")
            self.logger.info(f"Max depth: {crawler_config.max_depth}, workers: {crawler_config.max_workers}, "
                             f"queue capacity: {crawler_config.queue_capacity}, "
                             f"output: {crawler_config.output_dir}")

            self.workers = [
                CrawlWorker(
                    worker_id=i,
                    frontier=self.frontier,
                    visited=self.visited,
                    fetcher=self.fetcher,
                    parser=self.parser,
                    downloader=self.downloader,
                    monitor=self.monitor,
                    max_depth=crawler_config.max_depth
                )
                for i in range(crawler_config.max_workers)
            ]
            for worker in self.workers:
                worker.start()

            self._start_stats_reporter()

            self.frontier.push(WorkItem(url=seed_url, depth=1))
            self.frontier.wait_until_drained()
            self.frontier.close()

            for worker in self.workers:
                worker.join()

        finally:
            self._stop_stats_reporter()
            self.frontier.close()
            self.workers = []
            with self._state_lock:
                self.is_running = False

        stats.end_time = time.time()
        self._fill_stats(stats, baseline)

        self.logger.info("Crawling completed")
        self._log_final_stats(stats)
        return stats

    def _snapshot(self) -> Dict[str, int]:
        monitor = self.monitor
        return {
            'pages_crawled': int(monitor.metrics.get_total('pages_crawled_total')),
            'images_downloaded': int(monitor.metrics.get_total('images_downloaded_total')),
            'bytes_written': int(monitor.metrics.get_total('bytes_written_total')),
            'fetch_errors': monitor.errors('fetch'),
            'download_errors': monitor.errors('download'),
            'unexpected_errors': monitor.errors('unexpected'),
            'skipped_depth': monitor.skips('depth'),
            'skipped_visited': monitor.skips('visited'),
        }

    def _fill_stats(self, stats: CrawlStats, baseline: Dict[str, int]):
        current = self._snapshot()
        for key, value in current.items():
            setattr(stats, key, value - baseline.get(key, 0))
        stats.urls_visited = len(self.visited) if self.visited is not None else 0

    def _start_stats_reporter(self):
        interval = self.config.monitoring.stats_interval
        if not interval:
            return

        self._reporter_stop.clear()
        self._reporter = threading.Thread(
            target=self._stats_reporter, args=(interval,), name="stats-reporter", daemon=True
        )
        self._reporter.start()

    def _stop_stats_reporter(self):
        if self._reporter is not None:
            self._reporter_stop.set()
            self._reporter.join()
            self._reporter = None

    def _stats_reporter(self, interval: float):
        """Periodically log crawl progress."""
        while not self._reporter_stop.wait(interval):
            self._log_current_stats()

    def _log_current_stats(self):
        """Log current crawl progress."""
        frontier = self.frontier
        if frontier is None:
            return

        queued = frontier.qsize()
        active = frontier.in_flight
        self.monitor.update_queue_size(queued)
        self.monitor.update_active_workers(active)

        summary = self.monitor.get_summary()
        metrics = summary['metrics']
        self.logger.info(
            f"Crawl Progress: "
            f"Pages={int(metrics.get('pages_crawled_total', 0))}, "
            f"Images={int(metrics.get('images_downloaded_total', 0))}, "
            f"Queued={queued}, "
            f"Active={active}, "
            f"Errors={int(metrics.get('errors_total', 0))}, "
            f"Rate={summary['rates']['pages_per_minute']:.1f} pages/min"
        )

    def _log_final_stats(self, stats: CrawlStats):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL SUMMARY ===")
        self.logger.info(f"URLs visited: {stats.urls_visited}")
        self.logger.info(f"Pages crawled: {stats.pages_crawled}")
        self.logger.info(f"Images downloaded: {stats.images_downloaded}")
        self.logger.info(f"Data written: {stats.bytes_written / 1024 / 1024:.1f} MB")
        self.logger.info(f"Fetch errors: {stats.fetch_errors}")
        self.logger.info(f"Download errors: {stats.download_errors}")
        if stats.unexpected_errors:
            self.logger.info(f"Unexpected errors: {stats.unexpected_errors}")
        self.logger.info(f"Skipped (depth): {stats.skipped_depth}")
        self.logger.info(f"Skipped (already visited): {stats.skipped_visited}")
        self.logger.info(f"Total time: {stats.elapsed_time:.2f} seconds")

    def close(self):
        """Release network resources."""
        self.fetcher.close()
        self.logger.debug("Crawler scheduler closed")

    def get_stats(self) -> Dict:
        """Get current monitor values."""
        return self.monitor.get_summary()
