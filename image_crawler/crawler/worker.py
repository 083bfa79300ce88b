"""
Worker threads that drive fetch -> parse -> download -> enqueue.
"""

import logging
import threading

from .url_frontier import FrontierQueue, VisitedSet, WorkItem
from .fetcher import WebFetcher
from .parser import ContentParser
from ..storage.image_store import ImageDownloader
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class CrawlWorker(threading.Thread):
    """
    Pulls work items from the frontier until it is closed and drained.

    Each popped item is processed at most once per URL: over-depth items
    and URLs another worker already claimed are dropped without a fetch.
    """

    def __init__(self, worker_id: int, frontier: FrontierQueue, visited: VisitedSet,
                 fetcher: WebFetcher, parser: ContentParser, downloader: ImageDownloader,
                 monitor: CrawlerMonitor, max_depth: int):
        super().__init__(name=f"worker-{worker_id}", daemon=True)
        self.worker_id = worker_id
        self.frontier = frontier
        self.visited = visited
        self.fetcher = fetcher
        self.parser = parser
        self.downloader = downloader
        self.monitor = monitor
        self.max_depth = max_depth

        self.logger = get_crawler_logger(__name__, worker_id=self.name)

    def run(self):
        self.logger.debug(f"{self.name} started")

        while True:
            item = self.frontier.pop()
            if item is None:
                break

            try:
                self.process(item)
            except Exception as e:
                self.logger.error(f"Unexpected error processing {item.url}: {e}", exc_info=True)
                self.monitor.record_error('unexpected')
            finally:
                self.frontier.task_done()

        self.logger.debug(f"{self.name} finished")

    def process(self, item: WorkItem):
        """Process a single work item."""
        if item.depth > self.max_depth:
            self.logger.debug(f"Skipping URL beyond max depth: {item.url}")
            self.monitor.record_skip('depth')
            return

        if not self.visited.try_claim(item.url):
            self.monitor.record_skip('visited')
            return

        result = self.fetcher.fetch(item.url)
        if not result.ok:
            self.logger.log_url_event(logging.WARNING, item.url, f"Error fetching {item.url}: {result.error}")
            self.monitor.record_error('fetch')
            return

        self.monitor.record_page_crawled(item.url, result.fetch_time)
        parsed = self.parser.extract(result.content, base_url=item.url)

        for image_url in parsed.images:
            download = self.downloader.download(image_url)
            if download.ok:
                self.monitor.record_image_downloaded(image_url, download.bytes_written)
            else:
                self.monitor.record_error('download')

        for link in parsed.links:
            self.frontier.push(item.child(link))

        self.logger.debug(f"Processed {item.url} at depth {item.depth}: "
                          f"{len(parsed.images)} images, {len(parsed.links)} links")
