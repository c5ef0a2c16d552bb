"""In-process expiring key/value cache"""

from .ttl_cache import TTLCache, cache

__all__ = ["TTLCache", "cache"]
