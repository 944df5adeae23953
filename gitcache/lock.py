"""
Advisory file locking for cache entries.

Every cache entry has a sibling lock file. Mutating the mirror (initial clone,
update) requires the exclusive lock; cloning working copies out of it only
requires the shared lock, so any number of clone-outs can run at once while
no writer is active.
"""

import fcntl
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

from gitcache.exceptions import LockError

logger = logging.getLogger(__name__)


class EntryLock:
    """
    A shared/exclusive lock backed by ``flock(2)`` on a lock file.

    Each acquisition opens its own file handle, so acquisitions from
    different threads of one process exclude each other just like
    acquisitions from different processes.
    """

    def __init__(self, lock_file: Path, timeout: Optional[float] = None):
        """
        Args:
            lock_file: Path to the lock file, created empty if missing
            timeout: Maximum time to wait for the lock (seconds); None waits forever
        """
        self.lock_file = Path(lock_file)
        self.timeout = timeout

    @contextmanager
    def acquire_exclusive(self) -> Iterator[TextIO]:
        """Hold the lock exclusively (write mode) for the duration of the block."""
        with self._acquire(fcntl.LOCK_EX) as handle:
            yield handle

    @contextmanager
    def acquire_shared(self) -> Iterator[TextIO]:
        """Hold the lock shared (read mode) for the duration of the block."""
        with self._acquire(fcntl.LOCK_SH) as handle:
            yield handle

    def _open(self) -> TextIO:
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            return open(self.lock_file, "a+")
        except OSError as e:
            raise LockError(self.lock_file, f"cannot create lock file: {e}")

    @contextmanager
    def _acquire(self, lock_type: int) -> Iterator[TextIO]:
        lock_handle = self._open()
        mode = "shared" if lock_type == fcntl.LOCK_SH else "exclusive"

        try:
            if self.timeout is None:
                fcntl.flock(lock_handle, lock_type)
            else:
                start_time = time.time()
                while True:
                    try:
                        fcntl.flock(lock_handle, lock_type | fcntl.LOCK_NB)
                        break
                    except BlockingIOError:
                        if time.time() - start_time > self.timeout:
                            raise LockError(
                                self.lock_file,
                                f"Timeout after {self.timeout} seconds",
                            )
                        time.sleep(0.1)
        except BaseException:
            lock_handle.close()
            raise

        logger.debug(f"Acquired {mode} lock {self.lock_file}")
        try:
            yield lock_handle
        finally:
            try:
                fcntl.flock(lock_handle, fcntl.LOCK_UN)
            finally:
                lock_handle.close()
            logger.debug(f"Released {mode} lock {self.lock_file}")
