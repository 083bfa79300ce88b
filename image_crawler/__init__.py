"""
Image Crawler

A bounded-depth concurrent crawler that follows links from a seed page and
downloads every image it finds.
"""

__version__ = "1.0.0"
__description__ = "A bounded-depth concurrent web crawler that downloads discovered images"
