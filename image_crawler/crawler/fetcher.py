"""
Web page and image fetcher built on a shared requests session.
"""

import logging
import threading
import time
from typing import Optional, Dict
from dataclasses import dataclass

import requests
from requests.exceptions import RequestException, Timeout


class FetchError(Exception):
    """Raised when a URL could not be fetched."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[bytes] = None
    headers: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    fetch_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self):
        """Raise FetchError if the fetch failed."""
        if self.error is not None:
            raise FetchError(self.url, self.error)


class WebFetcher:
    """
    Fetches URLs with a fixed timeout. Never retries.

    A single instance is shared by every worker thread.
    """

    def __init__(self, user_agent: str = "ImageCrawler/1.0", request_timeout: float = 30,
                 fail_on_http_error: bool = False, session: Optional[requests.Session] = None):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.fail_on_http_error = fail_on_http_error

        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': user_agent})

        # Statistics
        self._stats_lock = threading.Lock()
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the underlying session."""
        self.session.close()
        self.logger.debug("WebFetcher session closed")

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with the response body, or with error set on failure
        """
        start_time = time.time()
        self._bump('total_requests')

        try:
            response = self.session.get(url, timeout=self.request_timeout)
            content = response.content
            fetch_time = time.time() - start_time

            if self.fail_on_http_error and not 200 <= response.status_code < 300:
                self._bump('failed_requests')
                return FetchResult(
                    url=url,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    error=f"HTTP {response.status_code}",
                    fetch_time=fetch_time
                )

            self._bump('successful_requests')
            self._bump('total_bytes_downloaded', len(content))
            self.logger.debug(f"Fetched {url}: {response.status_code} ({len(content)} bytes)")

            return FetchResult(
                url=url,
                status_code=response.status_code,
                content=content,
                headers=dict(response.headers),
                fetch_time=fetch_time
            )

        except Timeout:
            error_msg = f"Request timeout after {self.request_timeout}s"

        except RequestException as e:
            error_msg = f"Request error: {e}"

        except ValueError as e:
            # requests raises plain ValueError for some malformed URLs
            error_msg = f"Invalid URL: {e}"

        self._bump('failed_requests')
        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    def _bump(self, key: str, amount: int = 1):
        with self._stats_lock:
            self.stats[key] += amount

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        with self._stats_lock:
            return self.stats.copy()

    def reset_stats(self):
        """Reset statistics counters."""
        with self._stats_lock:
            for key in self.stats:
                self.stats[key] = 0
