"""
Git operations for git-cache.

Architecture:
    - Cache Layer: one mirror clone per upstream repository in
      <cache_dir>/{host}/{org}/{repo}.git/, guarded by {repo}.git.lock
    - Work Layer: working copies cloned out of the mirror with --shared,
      their origin pointing back at the upstream URL

git itself is run through GitPython's command wrapper; see command.py.
"""

from .cache import CacheRepository, list_cache_entries
from .command import GitResult, run_git, shared_clone
from .gitmodules import GITMODULES, SubmoduleDeclaration, read_gitmodules
from .repo import GitRepo, parse_submodule_status
from .url import (
    cache_key,
    is_clone_target,
    repo_is_local,
    resolve_submodule_url,
    target_path_from_url,
)

__all__ = [
    "CacheRepository",
    "GitRepo",
    "GITMODULES",
    "GitResult",
    "SubmoduleDeclaration",
    "cache_key",
    "is_clone_target",
    "list_cache_entries",
    "parse_submodule_status",
    "read_gitmodules",
    "repo_is_local",
    "resolve_submodule_url",
    "run_git",
    "shared_clone",
    "target_path_from_url",
]
