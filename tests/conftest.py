import io
import logging
import shutil
from pathlib import Path
from typing import Dict, Optional

import git
import pytest

REMOTE_BASE_URL = "https://example.com/"


def pytest_runtest_setup(item):
    if item.get_closest_marker("requires_git") and shutil.which("git") is None:
        pytest.skip("git executable not available")


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("gitcache")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


# git fixtures


class RemoteFactory:
    """
    Creates "remote" repositories under a local directory.

    The isolated git config installed by the ``git_env`` fixture rewrites
    https://example.com/<name>.git to the local repository, so the URLs
    handed out here are treated as remote (and therefore cached).
    """

    def __init__(self, remotes_dir: Path):
        self.remotes_dir = remotes_dir

    @staticmethod
    def url(name: str) -> str:
        return f"{REMOTE_BASE_URL}{name}.git"

    def path(self, name: str) -> Path:
        return self.remotes_dir / f"{name}.git"

    def create(self, name: str, files: Optional[Dict[str, str]] = None) -> git.Repo:
        repo = git.Repo.init(self.path(name))
        self.commit(repo, files or {"README.md": f"# {name}\n"}, "initial commit")
        return repo

    @staticmethod
    def commit(repo: git.Repo, files: Dict[str, str], message: str = "update") -> str:
        for rel_path, content in files.items():
            file_path = Path(repo.working_tree_dir) / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        repo.git.add("-A")
        repo.git.commit("-m", message)
        return repo.head.commit.hexsha

    def add_submodule(self, repo: git.Repo, name: str, path: str) -> str:
        repo.git.submodule("add", self.url(name), path)
        repo.git.commit("-m", f"add submodule {path}")
        return repo.head.commit.hexsha


@pytest.fixture
def git_env(tmp_path, monkeypatch) -> Path:
    """Isolated git configuration; returns the directory holding the remotes."""
    remotes_dir = tmp_path / "remotes"
    remotes_dir.mkdir()

    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text(
        f'[url "file://{remotes_dir}/"]\n'
        f"\tinsteadOf = {REMOTE_BASE_URL}\n"
        '[protocol "file"]\n'
        "\tallow = always\n"
        "[init]\n"
        "\tdefaultBranch = main\n"
        "[user]\n"
        "\tname = Test User\n"
        "\temail = test@example.com\n"
    )
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    return remotes_dir


@pytest.fixture
def remotes(git_env) -> RemoteFactory:
    return RemoteFactory(git_env)


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def work_dir(tmp_path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path
