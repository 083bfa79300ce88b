"""
Page parser that extracts outbound links and image URLs from HTML.
"""

import re
import logging
from typing import List, Optional, Union
from urllib.parse import urljoin
from dataclasses import dataclass, field

from bs4 import BeautifulSoup


IMAGE_URL_PATTERN = re.compile(r'\.(jpg|jpeg|png|gif|bmp)$')


def is_image_url(url: str) -> bool:
    """Check whether a URL names an image by its suffix (case-sensitive)."""
    return IMAGE_URL_PATTERN.search(url) is not None


@dataclass
class ParsedContent:
    """Links and images found on one page, in document order."""
    url: Optional[str] = None
    links: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)


class ContentParser:
    """
    Extracts <a href> links and <img src> image URLs from HTML.
    """

    def __init__(self, resolve_relative_urls: bool = True, features: str = 'lxml'):
        self.resolve_relative_urls = resolve_relative_urls
        self.features = features
        self.logger = logging.getLogger(__name__)

    def extract(self, content: Union[bytes, str], base_url: Optional[str] = None) -> ParsedContent:
        """
        Parse HTML content and collect links and images.

        Args:
            content: Raw page body
            base_url: URL the body was fetched from, used to resolve relative URLs

        Returns:
            ParsedContent; on malformed markup, whatever was collected before
            the parser gave up
        """
        parsed_content = ParsedContent(url=base_url)

        if not content:
            return parsed_content

        try:
            soup = BeautifulSoup(content, self.features)

            for tag in soup.find_all(['a', 'img']):
                if tag.name == 'a':
                    href = tag.get('href')
                    if href is not None:
                        parsed_content.links.append(self._resolve(href, base_url))
                else:
                    src = tag.get('src')
                    if src is not None and is_image_url(src):
                        parsed_content.images.append(self._resolve(src, base_url))

        except Exception as e:
            self.logger.warning(f"Stopped parsing {base_url or 'page'} early: {e}")

        self.logger.debug(f"Parsed {base_url}: {len(parsed_content.links)} links, "
                          f"{len(parsed_content.images)} images")
        return parsed_content

    def _resolve(self, url: str, base_url: Optional[str]) -> str:
        if self.resolve_relative_urls and base_url:
            return urljoin(base_url, url)
        return url
