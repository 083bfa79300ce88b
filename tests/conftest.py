"""Shared fixtures for crawler tests."""

import logging
import threading
import time
from typing import Dict, List, Optional

import pytest

from image_crawler.crawler.fetcher import FetchResult
from image_crawler.utils.config import Config, CrawlerConfig, LoggingConfig, MonitoringConfig


class FakeFetcher:
    """In-memory stand-in for WebFetcher, keyed by exact URL."""

    def __init__(self, pages: Optional[Dict[str, bytes]] = None, delay: float = 0.0):
        self.pages = dict(pages or {})
        self.delay = delay
        self.calls: List[str] = []
        self._lock = threading.Lock()
        self.closed = False

    def fetch(self, url: str) -> FetchResult:
        with self._lock:
            self.calls.append(url)
        if self.delay:
            time.sleep(self.delay)
        if url not in self.pages:
            return FetchResult(url=url, status_code=0, error="Request error: connection refused")
        return FetchResult(url=url, status_code=200, content=self.pages[url], fetch_time=0.01)

    def call_count(self, url: str) -> int:
        with self._lock:
            return self.calls.count(url)

    def close(self):
        self.closed = True


@pytest.fixture
def make_config(tmp_path):
    """Build a Config that writes into tmp_path and reports no progress."""
    def _make(**crawler_overrides) -> Config:
        crawler_overrides.setdefault('output_dir', str(tmp_path / 'images'))
        crawler_overrides.setdefault('max_workers', 4)
        return Config(
            crawler=CrawlerConfig(**crawler_overrides),
            logging=LoggingConfig(file=None),
            monitoring=MonitoringConfig(stats_interval=0),
        )
    return _make


@pytest.fixture
def restore_root_logger():
    """Undo handlers and level changes made by setup_logging()."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
