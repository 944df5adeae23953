"""
Submodule discovery.

Submodule declarations come from ``.gitmodules`` (parsed with dulwich's git
config parser); the commit each one is pinned to comes from
``git submodule status``. Only submodules with both are cloned: a submodule
without a pinned commit cannot be cloned reproducibly.
"""

import logging
from pathlib import Path
from typing import List, Optional

from gitcache.exceptions import SubmoduleDeclarationWarning
from gitcache.git.gitmodules import GITMODULES, read_gitmodules
from gitcache.git.repo import GitRepo
from gitcache.model import SubmoduleSpec

logger = logging.getLogger(__name__)


def matches_filter(path: str, pathspecs: List[str]) -> bool:
    """True if ``path`` is one of ``pathspecs`` or lies below one of them."""
    for spec in pathspecs:
        spec = spec.rstrip("/")
        if spec in ("", "."):
            return True
        if path == spec or path.startswith(spec + "/"):
            return True
    return False


class SubmoduleResolver:
    """Resolve the submodules of a checked-out repository into fetch specs."""

    def __init__(self, repo_path: Path):
        self.repo = GitRepo(repo_path)
        self.skipped: List[SubmoduleDeclarationWarning] = []

    def _skip(self, name: str, reason: str) -> None:
        warning = SubmoduleDeclarationWarning(self.repo.path, name, reason)
        logger.warning(str(warning))
        self.skipped.append(warning)

    def resolve(self, pathspecs: Optional[List[str]] = None) -> List[SubmoduleSpec]:
        """
        Args:
            pathspecs: Only keep submodules matching these; None keeps all

        Returns:
            One SubmoduleSpec per declared, pinned (and matching) submodule
        """
        gitmodules = self.repo.path / GITMODULES
        if not gitmodules.exists():
            return []

        declarations = read_gitmodules(gitmodules.read_bytes())
        if not declarations:
            return []

        commits = self.repo.submodule_commits()

        submodules = []
        for declaration in declarations:
            if declaration.path is None or declaration.url is None:
                self._skip(declaration.name, "missing path or url")
                continue

            if pathspecs is not None and not matches_filter(
                declaration.path, pathspecs
            ):
                continue

            commit = commits.get(declaration.path)
            if commit is None:
                self._skip(
                    declaration.name,
                    f"could not find submodule commit for path '{declaration.path}'",
                )
                continue

            submodules.append(
                SubmoduleSpec(
                    path=declaration.path,
                    url=declaration.url,
                    commit=commit,
                    branch=declaration.branch,
                )
            )

        return submodules
