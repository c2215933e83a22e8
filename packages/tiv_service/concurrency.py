import os
import re
import time
from contextlib import contextmanager

from packages.tiv_core.logging import get_logger

logger = get_logger("tiv.service.concurrency")

_SAFE_ID = re.compile(r"[^A-Za-z0-9_.-]")


class ConcurrencyManager:
    """
    Serializes state-changing operations per session.
    Uses an exclusive lock file per resource.
    FAIL-FAST: if the lock is held, BlockingIOError is raised immediately.
    """

    def __init__(self, lock_dir: str = ".locks", stale_seconds: float = 60):
        self.lock_dir = lock_dir
        self.stale_seconds = stale_seconds
        os.makedirs(self.lock_dir, exist_ok=True)

    def _lock_path(self, resource_id: str) -> str:
        return os.path.join(self.lock_dir, f"{_SAFE_ID.sub('_', resource_id)}.lock")

    @contextmanager
    def acquire_lock(self, resource_id: str):
        lock_file = self._lock_path(resource_id)

        if os.path.exists(lock_file) and time.time() - os.path.getmtime(lock_file) > self.stale_seconds:
            logger.warning(f"Removing stale lock for {resource_id}")
            try:
                os.remove(lock_file)
            except FileNotFoundError:
                pass

        try:
            fd = os.open(lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            logger.warning(f"Lock contention on {resource_id}")
            raise BlockingIOError(f"Resource {resource_id} is currently locked by another request.")

        try:
            with os.fdopen(fd, "w") as f:
                f.write(str(time.time()))
            yield
        finally:
            try:
                os.remove(lock_file)
            except FileNotFoundError:
                pass
