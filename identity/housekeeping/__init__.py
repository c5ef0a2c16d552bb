"""
Housekeeping jobs.

The cache cleaner runs on its own thread inside the API process, since the
cache it clears lives in that process's memory.
"""

from .cache_cleaner import clean_cache, is_running, start_cache_cleaner, stop_cache_cleaner

__all__ = ["clean_cache", "start_cache_cleaner", "stop_cache_cleaner", "is_running"]
