"""Background job that periodically clears the whole session/handshake cache."""

import threading
from typing import Optional

import schedule

from ..cache.ttl_cache import TTLCache
from ..utils.logger import get_logger

logger = get_logger(__name__)

_stop = threading.Event()
_thread: Optional[threading.Thread] = None
_scheduler: Optional[schedule.Scheduler] = None


def clean_cache(cache: TTLCache) -> int:
    """Drop every cached session and handshake"""
    dropped = cache.clear()
    logger.info("Cache cleared", entries=dropped)
    return dropped


def _scheduler_loop(scheduler: schedule.Scheduler, poll_seconds: float) -> None:
    logger.info("Cache cleaner loop started")

    while not _stop.is_set():
        try:
            scheduler.run_pending()
        except Exception as e:
            logger.error("Error in cache cleaner loop", error=str(e))
        _stop.wait(poll_seconds)

    logger.info("Cache cleaner loop stopped")


def start_cache_cleaner(cache: TTLCache, interval_minutes: int = 60, poll_seconds: float = 30) -> schedule.Scheduler:
    """Start the cache cleaner background thread"""
    global _thread, _scheduler

    if _thread is not None and _scheduler is not None:
        logger.warning("Cache cleaner already running")
        return _scheduler

    _scheduler = schedule.Scheduler()
    _scheduler.every(interval_minutes).minutes.do(clean_cache, cache)

    _stop.clear()
    _thread = threading.Thread(
        target=_scheduler_loop,
        args=(_scheduler, poll_seconds),
        daemon=True,
        name="cache-cleaner",
    )
    _thread.start()
    logger.info("Cache cleaner started", interval_minutes=interval_minutes)
    return _scheduler


def stop_cache_cleaner() -> None:
    """Stop the cache cleaner"""
    global _thread, _scheduler

    _stop.set()
    if _thread is not None:
        _thread.join(timeout=5)
        _thread = None

    if _scheduler is not None:
        _scheduler.clear()
        _scheduler = None
    logger.info("Cache cleaner stopped")


def is_running() -> bool:
    return _thread is not None and _thread.is_alive()
