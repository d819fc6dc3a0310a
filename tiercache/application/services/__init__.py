"""
Application Services

Business logic between the HTTP routes and the tiered cache.
"""

from .cache_handler import CacheHandler, is_fetch_cache

__all__ = ["CacheHandler", "is_fetch_cache"]
