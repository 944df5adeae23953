"""
Bounded parallelism for recursive submodule clones.

A WorkerPool caps how many clones run at the same time across every level of
a recursive clone. Work items hold a slot only while they run git; waiting on
nested work does not hold one, so nesting can never exhaust the pool.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class WorkerPool:
    """N job slots shared by everything dispatched through this pool."""

    def __init__(self, jobs: int = 1):
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.jobs = jobs
        self._slots = threading.BoundedSemaphore(jobs)

    def __repr__(self) -> str:
        return f"WorkerPool(jobs={self.jobs})"

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Block until one of the N slots is free and hold it for the block."""
        with self._slots:
            yield

    def run_all(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """
        Run ``fn`` on every item in parallel and wait for all of them.

        Nothing is cancelled when an item fails: every item already
        dispatched runs to completion, then the first failure (in completion
        order) is raised.

        Returns:
            Results in the order of ``items``
        """
        items = list(items)
        if not items:
            return []

        first_error: Optional[BaseException] = None
        results: List[Optional[R]] = [None] * len(items)

        with ThreadPoolExecutor(max_workers=min(self.jobs, len(items))) as executor:
            futures = {executor.submit(fn, item): i for i, item in enumerate(items)}
            for future in as_completed(futures):
                try:
                    results[futures[future]] = future.result()
                except Exception as e:
                    if first_error is None:
                        first_error = e
                    else:
                        logger.debug(f"Additional failure: {e}")

        if first_error is not None:
            raise first_error
        return results  # type: ignore[return-value]
