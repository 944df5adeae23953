import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from gitcache.exceptions import (
    CheckoutError,
    CommandError,
    SparseCheckoutError,
    SubmoduleError,
)
from gitcache.git.command import GitResult, run_git

logger = logging.getLogger(__name__)

# `git rev-parse --git-dir` answers when run at the top of a bare/mirror
# repository (".") or of a working copy (".git")
_TOP_LEVEL_GIT_DIRS = (b".", b".git")

# " f47ce7b5fbbb3aa43d33d2be1f6cd3746b13d5bf some/path (heads/main)"
_STATUS_DESCRIBE_RE = re.compile(r"^(.*) \([^()]*\)$")


def parse_submodule_status(output: Union[bytes, str]) -> Dict[str, str]:
    """
    Parse ``git submodule status`` output into a path -> commit mapping.

    Each line is one status character, the pinned commit, a space, the
    submodule path and optionally a parenthesized describe suffix.
    """
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")

    commits = {}
    for line in output.splitlines():
        if len(line) < 3:
            continue
        commit, _, path = line[1:].partition(" ")
        match = _STATUS_DESCRIBE_RE.match(path)
        if match:
            path = match.group(1)
        if commit and path:
            commits[path] = commit
    return commits


class GitRepo:
    """A git repository (working copy or mirror) on the local filesystem."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"GitRepo({str(self.path)!r})"

    def git(self, *args: Union[str, Path]) -> GitResult:
        return run_git(args, cwd=self.path)

    def is_initialized(self) -> bool:
        """True if ``path`` is the top level of a git repository."""
        if not self.path.is_dir():
            return False
        result = self.git("rev-parse", "--git-dir")
        return result.success and result.stdout.strip() in _TOP_LEVEL_GIT_DIRS

    def has_commit(self, rev: str) -> bool:
        return self.git("cat-file", "-e", f"{rev}^{{commit}}").success

    def get_config(self, key: str) -> Optional[str]:
        result = self.git("config", "--get", key)
        if not result.success:
            return None
        return result.stdout.decode("utf-8").strip()

    def set_config(self, key: str, value: str) -> None:
        result = self.git("config", key, value)
        if not result.success:
            raise CommandError(
                f"cannot set configuration value {key} in {self.path}", result.stderr
            )

    def checkout(self, rev: str) -> None:
        result = self.git("checkout", rev)
        if not result.success:
            raise CheckoutError(self.path, rev, result.stderr)

    def sparse_checkout(self, paths: Iterable[str]) -> None:
        paths = list(paths)
        result = self.git("sparse-checkout", "set", *paths)
        if not result.success:
            raise SparseCheckoutError(self.path, paths, result.stderr)

    def submodule_commits(self) -> Dict[str, str]:
        result = self.git("submodule", "status")
        if not result.success:
            raise SubmoduleError(
                self.path, "error reading submodule status", result.stderr
            )
        return parse_submodule_status(result.stdout)

    def init_submodule(self, path: str) -> None:
        result = self.git("submodule", "init", "--", path)
        if not result.success:
            raise SubmoduleError(
                self.path, f"error initializing submodule '{path}'", result.stderr
            )

    def show(self, spec: str) -> Optional[bytes]:
        """Contents of ``<rev>:<path>``, or None if it does not exist."""
        result = self.git("show", spec)
        return result.stdout if result.success else None
