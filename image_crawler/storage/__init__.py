"""
Storage layer for downloaded images.
"""

from .image_store import ImageDownloader, DownloadResult, DownloadError, filename_from_url

__all__ = ['ImageDownloader', 'DownloadResult', 'DownloadError', 'filename_from_url']
