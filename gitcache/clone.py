"""
Clone a repository through the cache.

A clone request goes through these steps:

    1. decide between a cached and a direct clone (remote vs. local URL)
    2. resolve and validate the target path
    3. cached only: create or refresh the mirror (exclusive lock)
    4. clone the working copy out (shared lock for cached clones)
    5. check out the requested commit
    6. apply the sparse checkout paths
    7. recursively clone submodules

Usage:
    orchestrator = CloneOrchestrator(get_cache_dir())
    target = orchestrator.clone(
        build_clone_request(
            repository_url="https://github.com/user/repo",
            commit="1faafa2",
            recurse_submodules="all",
        )
    )
"""

import logging
from pathlib import Path
from typing import Optional

from gitcache.exceptions import CommitNotFoundError, DestinationExistsError
from gitcache.git.cache import CacheRepository
from gitcache.git.command import shared_clone
from gitcache.git.repo import GitRepo
from gitcache.git.url import is_clone_target, target_path_from_url
from gitcache.model import CloneRequest
from gitcache.pool import WorkerPool
from gitcache.recursion import RecursionEngine
from gitcache.submodules import SubmoduleResolver

logger = logging.getLogger(__name__)


class CloneOrchestrator:
    """
    Runs clone requests against one cache base directory.

    The orchestrator owns the WorkerPool that bounds recursive submodule
    clones. Pass one in to size it explicitly; otherwise it is sized from the
    ``jobs`` of the first request that recurses, and later sizes are ignored.
    """

    def __init__(
        self,
        cache_base_dir: Path,
        pool: Optional[WorkerPool] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.cache_base_dir = Path(cache_base_dir)
        self.pool = pool
        self.lock_timeout = lock_timeout

    def cache_repository(self, url: str) -> CacheRepository:
        return CacheRepository(self.cache_base_dir, url, lock_timeout=self.lock_timeout)

    def clone(self, request: CloneRequest) -> Path:
        """
        Clone ``request.repository_url``, including submodules if requested.

        Returns:
            The path of the new working copy
        """
        target_path = self.clone_working_copy(request)
        self.clone_submodules(request, target_path)
        return target_path

    def resolve_target(self, request: CloneRequest) -> Path:
        target_path = target_path_from_url(
            request.repository_url,
            str(request.target_path) if request.target_path is not None else None,
        )
        if not is_clone_target(target_path):
            raise DestinationExistsError(target_path)
        return target_path

    def populate(self, cache_repo: CacheRepository, request: CloneRequest) -> None:
        """
        Make sure the cache entry exists and contains the requested commit.

        Must be called with the entry's exclusive lock held.
        """
        commit = request.commit

        if cache_repo.initialize_if_absent():
            # a fresh mirror is as current as an update would make it
            if commit is not None and not cache_repo.has_commit(commit):
                raise CommitNotFoundError(request.repository_url, commit)
            return

        try_update = commit is not None and not cache_repo.has_commit(commit)
        if request.update or try_update:
            logger.info(f"Updating cache for {request.repository_url}...")
            cache_repo.update()

        if try_update and not cache_repo.has_commit(commit):
            raise CommitNotFoundError(request.repository_url, commit)

    def clone_working_copy(self, request: CloneRequest) -> Path:
        """Everything but submodule recursion. Returns the target path."""
        target_path = self.resolve_target(request)

        if request.cached:
            cache_repo = self.cache_repository(request.repository_url)
            with cache_repo.lock.acquire_exclusive():
                self.populate(cache_repo, request)
            with cache_repo.lock.acquire_shared():
                logger.debug(f"Cloning {cache_repo.path} into {target_path}")
                cache_repo.clone_into(target_path, request.extra_clone_args)
        else:
            logger.debug(f"Cloning {request.repository_url} directly")
            shared_clone(request.repository_url, target_path, request.extra_clone_args)

        target_repo = GitRepo(target_path)

        if request.commit is not None:
            target_repo.set_config("advice.detachedHead", "false")
            target_repo.checkout(request.commit)

        if request.sparse_paths:
            target_repo.sparse_checkout(request.sparse_paths)

        return target_path

    def clone_submodules(self, request: CloneRequest, target_path: Path) -> None:
        if not request.wants_submodules:
            return

        if self.pool is None:
            self.pool = WorkerPool(request.jobs)

        submodules = SubmoduleResolver(target_path).resolve(request.submodule_filter)
        if not submodules:
            return

        RecursionEngine(self, self.pool).clone_all(
            target_path, request.repository_url, submodules, request
        )
