"""
Image downloads into a flat output directory.
"""

import hashlib
import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from ..crawler.fetcher import WebFetcher


class DownloadError(Exception):
    """Raised when an image could not be fetched or written."""
    pass


@dataclass
class DownloadResult:
    """Outcome of one image download."""
    url: str
    path: Optional[Path] = None
    bytes_written: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def filename_from_url(url: str, unique: bool = False) -> str:
    """
    Derive the local filename for an image URL.

    The last segment of the URL path is used as-is, so distinct URLs that
    share it map to the same file unless ``unique`` is set.
    """
    name = posixpath.basename(urlparse(url).path)
    if not name:
        raise DownloadError(f"Cannot derive a filename from {url}")

    if unique:
        digest = hashlib.sha1(url.encode('utf-8')).hexdigest()[:12]
        name = f"{digest}_{name}"

    return name


class ImageDownloader:
    """
    Fetches images and writes them to disk.

    Writes are not coordinated between threads; two downloads resolving to
    the same filename race and the last write wins.
    """

    def __init__(self, fetcher: WebFetcher, output_dir: Union[str, Path] = "images",
                 unique_filenames: bool = False):
        self.fetcher = fetcher
        self.output_dir = Path(output_dir)
        self.unique_filenames = unique_filenames
        self.logger = logging.getLogger(__name__)

    def download(self, url: str) -> DownloadResult:
        """Download one image. Failures are logged and returned, never raised."""
        try:
            path, size = self._download(url)
        except DownloadError as e:
            self.logger.warning(f"Error downloading {url}: {e}")
            return DownloadResult(url=url, error=str(e))

        self.logger.info(f"Downloaded: {path}")
        return DownloadResult(url=url, path=path, bytes_written=size)

    def _download(self, url: str):
        result = self.fetcher.fetch(url)
        if not result.ok:
            raise DownloadError(result.error)

        filename = filename_from_url(url, unique=self.unique_filenames)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"Cannot create {self.output_dir}: {e}") from e

        path = self.output_dir / filename
        content = result.content or b''
        try:
            path.write_bytes(content)
        except OSError as e:
            raise DownloadError(f"Cannot write {path}: {e}") from e

        return path, len(content)
