"""
Image crawler core components.
"""

from .url_frontier import FrontierQueue, FrontierClosedError, VisitedSet, WorkItem
from .fetcher import WebFetcher, FetchResult, FetchError
from .parser import ContentParser, ParsedContent, is_image_url

__all__ = [
    'FrontierQueue', 'FrontierClosedError', 'VisitedSet', 'WorkItem',
    'WebFetcher', 'FetchResult', 'FetchError',
    'ContentParser', 'ParsedContent', 'is_image_url'
]
