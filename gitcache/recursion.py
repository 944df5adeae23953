import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, List

from gitcache.exceptions import ConfigurationError
from gitcache.git.repo import GitRepo
from gitcache.git.url import resolve_submodule_url
from gitcache.model import (
    RECURSE_ALL,
    CloneRequest,
    SubmoduleSpec,
    build_clone_request,
)
from gitcache.pool import WorkerPool

if TYPE_CHECKING:
    from gitcache.clone import CloneOrchestrator

logger = logging.getLogger(__name__)


class RecursionEngine:
    """Clone the submodules of a working copy in parallel, recursively."""

    def __init__(self, orchestrator: "CloneOrchestrator", pool: WorkerPool):
        self.orchestrator = orchestrator
        self.pool = pool

    def child_request(
        self,
        parent_path: Path,
        parent_url: str,
        submodule: SubmoduleSpec,
        request: CloneRequest,
    ) -> CloneRequest:
        """
        Raises:
            ConfigurationError: If the submodule does not make a valid request
        """
        try:
            return build_clone_request(
                repository_url=resolve_submodule_url(parent_url, submodule.url),
                target_path=parent_path / submodule.path,
                cached=True,
                update=request.update,
                commit=submodule.commit,
                recurse_submodules=RECURSE_ALL,
                shallow_submodules=request.shallow_submodules,
                jobs=request.jobs,
            )
        except ConfigurationError as e:
            raise ConfigurationError(
                f"submodule '{submodule.path}' of {parent_url}: {e}"
            )

    def clone_all(
        self,
        parent_path: Path,
        parent_url: str,
        submodules: List[SubmoduleSpec],
        request: CloneRequest,
    ) -> None:
        """
        Clone every submodule of ``parent_path`` and register it with the parent.

        At most ``pool.jobs`` clones run at once. A failing submodule does not
        stop its siblings; once all of them are done the first failure is
        raised.
        """
        parent = GitRepo(parent_path)
        # concurrent `git submodule init` calls race on the parent's config lock
        init_lock = threading.Lock()

        def clone_one(submodule: SubmoduleSpec) -> Path:
            child = self.child_request(parent_path, parent_url, submodule, request)
            with self.pool.slot():
                logger.info(
                    f"Cloning {child.repository_url} into {child.target_path}..."
                )
                target_path = self.orchestrator.clone_working_copy(child)
            self.orchestrator.clone_submodules(child, target_path)
            with init_lock:
                parent.init_submodule(submodule.path)
            return target_path

        self.pool.run_all(clone_one, submodules)
