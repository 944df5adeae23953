"""
Exception classes for git-cache.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

PathLike = Union[str, Path]


class GitCacheError(Exception):
    """Base exception for all git-cache errors."""

    pass


class ConfigurationError(GitCacheError):
    """Raised for an invalid or conflicting request, before any I/O happens."""

    pass


class DestinationExistsError(GitCacheError):
    """Raised when the clone target exists and is not an empty directory."""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(
            f"destination path '{path}' already exists and is not an empty directory"
        )


class LockError(GitCacheError):
    """Raised when a cache entry lock cannot be created or acquired."""

    def __init__(self, lock_file: PathLike, message: str = ""):
        self.lock_file = str(lock_file)
        if message:
            super().__init__(f"Lock error for {lock_file}: {message}")
        else:
            super().__init__(f"Could not acquire lock for {lock_file}")


class CommitNotFoundError(GitCacheError):
    """Raised when a pinned commit is absent from the cache, even after an update."""

    def __init__(self, url: str, commit: str):
        self.url = url
        self.commit = commit
        super().__init__(f"{url} does not contain commit {commit}")


class CommandError(GitCacheError):
    """Base class for a git subprocess that reported failure."""

    def __init__(self, message: str, stderr: Optional[str] = None):
        self.stderr = stderr
        detail = _last_line(stderr)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MirrorError(CommandError):
    def __init__(self, url: str, path: PathLike, stderr: Optional[str] = None):
        self.url = url
        self.path = Path(path)
        super().__init__(f"error mirroring {url} into {path}", stderr)


class UpdateError(CommandError):
    def __init__(self, url: str, path: PathLike, stderr: Optional[str] = None):
        self.url = url
        self.path = Path(path)
        super().__init__(f"error updating cache of {url} at {path}", stderr)


class CloneError(CommandError):
    def __init__(self, source: str, target: PathLike, stderr: Optional[str] = None):
        self.source = source
        self.target = Path(target)
        super().__init__(f"error cloning {source} into {target}", stderr)


class CheckoutError(CommandError):
    def __init__(self, path: PathLike, rev: str, stderr: Optional[str] = None):
        self.path = Path(path)
        self.rev = rev
        super().__init__(f"error checking out {rev} in {path}", stderr)


class SparseCheckoutError(CommandError):
    def __init__(
        self, path: PathLike, paths: Iterable[str], stderr: Optional[str] = None
    ):
        self.path = Path(path)
        self.paths = list(paths)
        super().__init__(
            f"error setting up sparse checkout of {', '.join(self.paths)} in {path}",
            stderr,
        )


class SubmoduleError(CommandError):
    """Raised when git fails to report or register submodules of a repository."""

    def __init__(self, path: PathLike, message: str, stderr: Optional[str] = None):
        self.path = Path(path)
        super().__init__(f"{message} in {path}", stderr)


class SubmoduleDeclarationWarning(UserWarning):
    """A declared submodule that cannot be cloned reproducibly and was skipped."""

    def __init__(self, repo_path: PathLike, name: str, reason: str):
        self.repo_path = Path(repo_path)
        self.name = name
        self.reason = reason
        super().__init__(f"submodule '{name}' in {repo_path}: {reason}")


def _last_line(text: Optional[str]) -> str:
    if not text:
        return ""
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    return lines[-1] if lines else ""
