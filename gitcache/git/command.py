"""Running git through GitPython's command wrapper."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from git import Git
from git.exc import GitCommandNotFound

from gitcache.exceptions import CloneError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class GitResult:
    returncode: int
    stdout: bytes
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


def run_git(
    args: Sequence[Union[str, Path]], cwd: Optional[Path] = None
) -> GitResult:
    """
    Run git with ``args`` and wait for it to exit.

    A non-zero exit status is returned, not raised; callers turn it into the
    matching ``CommandError``.

    Args:
        args: Arguments following the ``git`` executable
        cwd: Repository to run in, passed as ``-C <cwd>``

    Returns:
        Exit status with captured stdout (bytes) and stderr (text)
    """
    command: List[str] = [Git.GIT_PYTHON_GIT_EXECUTABLE]
    if cwd is not None:
        command += ["-C", str(cwd)]
    command += [str(arg) for arg in args]

    logger.debug(f"Running {' '.join(command)}")
    try:
        status, stdout, stderr = Git().execute(
            command,
            with_extended_output=True,
            with_exceptions=False,
            as_process=False,
            stdout_as_string=False,
            strip_newline_in_stdout=False,
        )
    except GitCommandNotFound as e:
        raise ConfigurationError(f"git executable not found: {e}")

    if stderr.strip():
        logger.debug(stderr.rstrip())
    return GitResult(status, stdout, stderr)


def shared_clone(
    source: Union[str, Path],
    target: Path,
    pass_through_args: Optional[Sequence[str]] = None,
) -> None:
    """
    Clone ``source`` into ``target`` sharing its object storage where possible.

    Raises:
        CloneError: If git reports failure
    """
    args: List[Union[str, Path]] = ["clone", "--shared"]
    args += list(pass_through_args or [])
    args += ["--", source, target]

    result = run_git(args)
    if not result.success:
        raise CloneError(str(source), target, result.stderr)
