"""
Named locks serializing read-then-write sequences on the record store.

Keys look like lock:ids:{table}:{id_prefix}. A key is held by at most one
thread in the process (threading.Lock) and one process on the host
(O_EXCL lock file under the locks directory). A lock file left behind by a
crashed process is not broken automatically; remove it by hand.
"""

import os
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator, List, Optional

from ..utils.exceptions import LockTimeoutError

LOCK_TIMEOUT_SECONDS = 30
LOCK_POLL_INTERVAL = 0.05

# key -> [lock, number of threads holding or waiting]; dropped when unused
_thread_locks: Dict[str, List] = {}
_thread_locks_guard = threading.Lock()


def _checkout(key: str) -> threading.Lock:
    with _thread_locks_guard:
        entry = _thread_locks.setdefault(key, [threading.Lock(), 0])
        entry[1] += 1
        return entry[0]


def _checkin(key: str) -> None:
    with _thread_locks_guard:
        entry = _thread_locks.get(key)
        if entry is None:
            return
        entry[1] -= 1
        if entry[1] <= 0:
            del _thread_locks[key]


def _lock_path(locks_dir: Path, key: str) -> Path:
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
    locks_dir.mkdir(parents=True, exist_ok=True)
    return locks_dir / f"{safe}.lock"


@contextmanager
def acquire_lock(
    key: str,
    locks_dir: Optional[Path] = None,
    timeout_seconds: float = LOCK_TIMEOUT_SECONDS,
) -> Generator[None, None, None]:
    """
    Acquire a named lock; blocks until acquired or raises LockTimeoutError.
    Without locks_dir only threads of this process are serialized.
    """
    start = time.monotonic()
    local = _checkout(key)
    if not local.acquire(timeout=timeout_seconds):
        _checkin(key)
        raise LockTimeoutError(key, timeout_seconds)

    path = None
    try:
        if locks_dir is not None:
            path = _lock_path(Path(locks_dir), key)
            while True:
                try:
                    fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
                except FileExistsError:
                    if (time.monotonic() - start) >= timeout_seconds:
                        path = None  # not ours to remove
                        raise LockTimeoutError(key, timeout_seconds)
                    time.sleep(LOCK_POLL_INTERVAL)
                    continue
                try:
                    os.write(fd, str(os.getpid()).encode())
                finally:
                    os.close(fd)
                break
        yield
    finally:
        if path is not None:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
        local.release()
        _checkin(key)


def lock_key_ids(table: str, id_prefix: str) -> str:
    return f"lock:ids:{table}:{id_prefix}"
