"""
Monitoring and metrics collection for the image crawler.
"""

import time
import logging
import threading
from typing import Dict, Optional, Any, Tuple

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, start_http_server


LabelKey = Tuple[Tuple[str, str], ...]


def _label_key(labels: Optional[Dict[str, str]]) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


class MetricsCollector:
    """
    Collects crawler metrics shared by all worker threads.

    Values are kept in-process (for summaries and tests) and mirrored into
    Prometheus metrics on a private registry.
    """

    def __init__(self, enable_prometheus: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.enable_prometheus = enable_prometheus
        self.prometheus_port = prometheus_port

        self._lock = threading.Lock()
        self._values: Dict[str, Dict[LabelKey, float]] = {}

        self.prometheus_registry = CollectorRegistry()
        self.prometheus_metrics = {
            'pages_crawled_total': Counter(
                'crawler_pages_crawled_total',
                'Total number of pages fetched and parsed',
                registry=self.prometheus_registry
            ),
            'images_downloaded_total': Counter(
                'crawler_images_downloaded_total',
                'Total number of images written to disk',
                registry=self.prometheus_registry
            ),
            'bytes_written_total': Counter(
                'crawler_bytes_written_total',
                'Total image bytes written to disk',
                registry=self.prometheus_registry
            ),
            'errors_total': Counter(
                'crawler_errors_total',
                'Total number of crawl errors',
                ['error_type'],
                registry=self.prometheus_registry
            ),
            'skipped_total': Counter(
                'crawler_skipped_total',
                'Work items discarded without fetching',
                ['reason'],
                registry=self.prometheus_registry
            ),
            'response_time_seconds': Histogram(
                'crawler_response_time_seconds',
                'Response time for page requests',
                registry=self.prometheus_registry
            ),
            'queue_size': Gauge(
                'crawler_queue_size',
                'Number of work items in the frontier queue',
                registry=self.prometheus_registry
            ),
            'active_workers': Gauge(
                'crawler_active_workers',
                'Number of workers processing an item',
                registry=self.prometheus_registry
            ),
        }

    def start_prometheus_server(self):
        """Start Prometheus metrics HTTP server."""
        if not self.enable_prometheus:
            return

        try:
            start_http_server(self.prometheus_port, registry=self.prometheus_registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def increment_counter(self, name: str, amount: float = 1,
                          labels: Optional[Dict[str, str]] = None):
        """Increment a counter metric."""
        key = _label_key(labels)
        with self._lock:
            series = self._values.setdefault(name, {})
            series[key] = series.get(key, 0) + amount

        prom_metric = self.prometheus_metrics.get(name)
        if prom_metric is not None:
            if labels:
                prom_metric.labels(**labels).inc(amount)
            else:
                prom_metric.inc(amount)

    def set_gauge(self, name: str, value: float):
        """Set a gauge metric value."""
        with self._lock:
            self._values.setdefault(name, {})[()] = value

        prom_metric = self.prometheus_metrics.get(name)
        if prom_metric is not None:
            prom_metric.set(value)

    def observe_histogram(self, name: str, value: float):
        """Record a histogram observation."""
        prom_metric = self.prometheus_metrics.get(name)
        if prom_metric is not None:
            prom_metric.observe(value)

    def get_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Get the current value of a single series."""
        with self._lock:
            return self._values.get(name, {}).get(_label_key(labels), 0)

    def get_total(self, name: str) -> float:
        """Get the sum of a metric across all label sets."""
        with self._lock:
            return sum(self._values.get(name, {}).values())

    def get_current_values(self) -> Dict[str, float]:
        """Get current values of all metrics, summed across labels."""
        with self._lock:
            return {name: sum(series.values()) for name, series in self._values.items()}


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()
        self.logger = logging.getLogger(__name__)
        self.start_time = time.time()

    def reset_clock(self):
        self.start_time = time.time()

    def record_page_crawled(self, url: str, response_time: float):
        """Record a page that was fetched and handed to the parser."""
        self.logger.debug(f"Page crawled in {response_time:.3f}s: {url}", extra={'url': url})
        self.metrics.increment_counter('pages_crawled_total')
        self.metrics.observe_histogram('response_time_seconds', response_time)

    def record_image_downloaded(self, url: str, size: int):
        """Record an image written to disk."""
        self.logger.debug(f"Image stored ({size} bytes): {url}", extra={'url': url})
        self.metrics.increment_counter('images_downloaded_total')
        self.metrics.increment_counter('bytes_written_total', size)

    def record_error(self, error_type: str):
        """Record an error event."""
        self.metrics.increment_counter('errors_total', labels={'error_type': error_type})

    def record_skip(self, reason: str):
        """Record a work item discarded without fetching."""
        self.metrics.increment_counter('skipped_total', labels={'reason': reason})

    def update_queue_size(self, size: int):
        self.metrics.set_gauge('queue_size', size)

    def update_active_workers(self, count: int):
        self.metrics.set_gauge('active_workers', count)

    def errors(self, error_type: str) -> int:
        return int(self.metrics.get_value('errors_total', {'error_type': error_type}))

    def skips(self, reason: str) -> int:
        return int(self.metrics.get_value('skipped_total', {'reason': reason}))

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        current_values = self.metrics.get_current_values()
        runtime = time.time() - self.start_time

        return {
            'runtime_seconds': runtime,
            'metrics': current_values,
            'rates': {
                'pages_per_minute': current_values.get('pages_crawled_total', 0) / (runtime / 60) if runtime > 0 else 0,
                'images_per_minute': current_values.get('images_downloaded_total', 0) / (runtime / 60) if runtime > 0 else 0,
            }
        }
