"""
Bulk prefetching of repositories into the cache.

Workers mirror (or update) one URL at a time. When recursing, each worker
also reports the submodule URLs it discovers, so the amount of work is not
known up front. Termination is detected by counting:

    - the coordinator (the calling thread) reads PrefetchUnits from a control
      queue: Url(u) increments the count of outstanding units and hands u to
      the workers, Done decrements it;
    - a worker sends Url for every submodule it discovers *before* sending
      Done for the unit that discovered them.

Control messages are processed one at a time by the coordinator, so the count
can only reach zero once every dispatched unit, including everything it
discovered, has completed. Then the work queue is closed and the workers exit.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from gitcache.exceptions import ConfigurationError
from gitcache.git.cache import CacheRepository
from gitcache.git.url import cache_key, repo_is_local
from gitcache.model import PrefetchRequest

logger = logging.getLogger(__name__)

# tells a worker that no more work will come
_STOP = None


def _seen_key(url: str) -> str:
    """URLs naming the same cache entry are the same repository."""
    try:
        return cache_key(url).as_posix()
    except ConfigurationError:
        return url


@dataclass(frozen=True)
class PrefetchUnit:
    """A control message: either a URL to prefetch or Done for a finished unit."""

    url: Optional[str] = None
    error: Optional[Exception] = None
    done_url: Optional[str] = None

    @classmethod
    def for_url(cls, url: str) -> "PrefetchUnit":
        return cls(url=url)

    @classmethod
    def done(cls, url: str, error: Optional[Exception] = None) -> "PrefetchUnit":
        return cls(done_url=url, error=error)

    @property
    def is_done(self) -> bool:
        return self.url is None


@dataclass
class PrefetchReport:
    total: int = 0
    failed: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class Prefetcher:
    """Mirror or update a dynamically growing set of repositories in parallel."""

    def __init__(
        self,
        cache_base_dir: Path,
        request: PrefetchRequest,
        lock_timeout: Optional[float] = None,
    ):
        self.cache_base_dir = Path(cache_base_dir)
        self.request = request
        self.lock_timeout = lock_timeout

    def prefetch_url(self, url: str) -> List[str]:
        """
        Mirror or update one repository.

        Returns:
            Submodule URLs discovered in it (empty unless recursing)
        """
        cache_repo = CacheRepository(
            self.cache_base_dir, url, lock_timeout=self.lock_timeout
        )

        with cache_repo.lock.acquire_exclusive():
            if not cache_repo.initialize_if_absent() and self.request.update:
                logger.info(f"Updating cache for {url}...")
                cache_repo.update()

        if not self.request.recurse_submodules:
            return []

        with cache_repo.lock.acquire_shared():
            submodule_urls = cache_repo.submodule_urls()

        discovered = []
        for submodule_url in submodule_urls:
            if repo_is_local(submodule_url):
                logger.warning(f"{url}: skipping local submodule {submodule_url}")
                continue
            logger.info(f"{url} getting submodule: {submodule_url}")
            discovered.append(submodule_url)
        return discovered

    def _worker(self, work: queue.Queue, control: queue.Queue) -> None:
        while True:
            url = work.get()
            if url is _STOP:
                return

            error = None
            try:
                for submodule_url in self.prefetch_url(url):
                    control.put(PrefetchUnit.for_url(submodule_url))
            except Exception as e:
                logger.error(f"Error prefetching {url}: {e}")
                error = e
            finally:
                control.put(PrefetchUnit.done(url, error))

    def run(self) -> PrefetchReport:
        """
        Prefetch all seed URLs (and their submodules, if recursing).

        Failures are independent: a failing repository is logged and
        recorded in the report, the others are still prefetched.
        """
        report = PrefetchReport()
        if not self.request.repository_urls:
            return report

        work: queue.Queue = queue.Queue()
        control: queue.Queue = queue.Queue()

        workers = [
            threading.Thread(
                target=self._worker,
                args=(work, control),
                name=f"prefetch-{i}",
                daemon=True,
            )
            for i in range(self.request.jobs)
        ]
        for worker in workers:
            worker.start()

        for url in self.request.repository_urls:
            control.put(PrefetchUnit.for_url(url))

        outstanding = 0
        seen = set()
        try:
            while True:
                unit = control.get()
                if unit.is_done:
                    outstanding -= 1
                    if unit.error is not None:
                        report.failed[unit.done_url] = unit.error
                else:
                    key = _seen_key(unit.url)
                    if key not in seen:
                        seen.add(key)
                        outstanding += 1
                        report.total += 1
                        work.put(unit.url)

                if outstanding == 0:
                    break
        finally:
            for _ in workers:
                work.put(_STOP)
            for worker in workers:
                worker.join()

        logger.info(f"Finished pre-fetching {report.total} repositories.")
        return report
