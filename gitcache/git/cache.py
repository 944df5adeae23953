"""
The mirror cache.

Cache Structure Example:
    ~/.gitcache/
    ├── github.com/
    │   ├── user/
    │   │   ├── repo.git/          # mirror clone (bare, all refs)
    │   │   ├── repo.git.lock      # advisory lock file, always empty
    │   │   └── other.git/
    │   │   └── other.git.lock
    └── gitlab.com/
        └── group/
            └── subgroup/
                ├── project.git/
                └── project.git.lock

Each entry is keyed by host and path of its upstream URL (see
``gitcache.git.url.cache_key``). Entries are created on first use and
refreshed on demand; they are never deleted here.

Locking:
    Writers (mirror, update) hold the entry's exclusive lock, clone-outs hold
    the shared lock. Callers take the lock; the methods below do not.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from gitcache.exceptions import CloneError, MirrorError, UpdateError
from gitcache.git.command import run_git, shared_clone
from gitcache.git.gitmodules import GITMODULES, read_gitmodules
from gitcache.git.repo import GitRepo
from gitcache.git.url import cache_key, resolve_submodule_url
from gitcache.lock import EntryLock

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"


def origin_name(pass_through_args: Optional[Sequence[str]]) -> str:
    """Name of the remote a clone with these git clone arguments gets."""
    name = "origin"
    args = list(pass_through_args or [])
    for i, arg in enumerate(args):
        if arg in ("--origin", "-o") and i + 1 < len(args):
            name = args[i + 1]
        elif arg.startswith("--origin="):
            name = arg[len("--origin=") :]
    return name


class CacheRepository:
    """One mirror clone in the cache, plus its lock."""

    def __init__(
        self, cache_base_dir: Path, url: str, lock_timeout: Optional[float] = None
    ):
        self.url = url
        self.path = Path(cache_base_dir) / cache_key(url)
        self.repo = GitRepo(self.path)
        self.lock = EntryLock(
            self.path.with_name(self.path.name + LOCK_SUFFIX), timeout=lock_timeout
        )

    def __repr__(self) -> str:
        return f"CacheRepository({self.url!r}, {str(self.path)!r})"

    def initialize_if_absent(self) -> bool:
        """
        Mirror the upstream repository into the cache unless it is already there.

        Returns:
            True if a fresh mirror clone was made

        Raises:
            MirrorError: If git fails to mirror the repository
        """
        if self.repo.is_initialized():
            return False

        if self.path.exists():
            if any(self.path.iterdir()):
                logger.warning(
                    f"Cached repository at {self.path} appears corrupt. Re-cloning."
                )
            shutil.rmtree(self.path)

        logger.info(f"Cloning {self.url} into cache...")
        self.path.mkdir(parents=True, exist_ok=True)
        result = run_git(["clone", "--mirror", "--", self.url, self.path])
        if not result.success:
            raise MirrorError(self.url, self.path, result.stderr)
        return True

    def update(self) -> None:
        """
        Refresh all refs of the mirror from upstream.

        Raises:
            UpdateError: If git fails to update the mirror
        """
        result = self.repo.git("remote", "update")
        if not result.success:
            raise UpdateError(self.url, self.path, result.stderr)

    def has_commit(self, rev: str) -> bool:
        return self.repo.has_commit(rev)

    def clone_into(
        self, target_path: Path, pass_through_args: Optional[Sequence[str]] = None
    ) -> None:
        """
        Clone the mirror into ``target_path``, sharing its objects.

        The clone's remote is pointed back at the upstream URL, so the result
        looks like a direct clone of it.

        Raises:
            CloneError: If git fails to clone or to rewrite the remote
        """
        shared_clone(self.path, target_path, pass_through_args)

        remote = origin_name(pass_through_args)
        result = run_git(["remote", "set-url", remote, self.url], cwd=target_path)
        if not result.success:
            raise CloneError(self.url, target_path, result.stderr)

    def submodule_urls(self) -> List[str]:
        """URLs of the submodules declared at the mirror's HEAD."""
        data = self.repo.show(f"HEAD:{GITMODULES}")
        if data is None:
            return []
        return [
            resolve_submodule_url(self.url, declaration.url)
            for declaration in read_gitmodules(data)
            if declaration.url is not None
        ]


def list_cache_entries(cache_base_dir: Path) -> List[dict]:
    """
    Describe the mirrors in the cache.

    Returns:
        List of dictionaries with:
        - key: Relative path in the cache (e.g., "github.com/user/repo.git")
        - url: Upstream URL the mirror was cloned from
        - path: Absolute path of the mirror
    """
    cache_base_dir = Path(cache_base_dir)
    if not cache_base_dir.exists():
        return []

    results = []
    for lock_file in sorted(cache_base_dir.rglob(f"*.git{LOCK_SUFFIX}")):
        repo = GitRepo(lock_file.with_name(lock_file.name[: -len(LOCK_SUFFIX)]))
        if not repo.is_initialized():
            logger.debug(f"Skipping {repo.path}: not a repository")
            continue
        results.append(
            {
                "key": repo.path.relative_to(cache_base_dir).as_posix(),
                "url": repo.get_config("remote.origin.url") or "unknown",
                "path": repo.path,
            }
        )
    return results
