"""Tests for parallel submodule recursion, with git replaced by fakes."""

import threading
import time
from pathlib import Path

import pytest

from gitcache.exceptions import CloneError, ConfigurationError
from gitcache.git.repo import GitRepo
from gitcache.model import RECURSE_ALL, SubmoduleSpec, build_clone_request
from gitcache.pool import WorkerPool
from gitcache.recursion import RecursionEngine


class FakeOrchestrator:
    def __init__(self, fail_urls=(), delay=0.0):
        self.fail_urls = set(fail_urls)
        self.delay = delay
        self.cloned = []
        self.recursed = []
        self.running = 0
        self.peak = 0
        self._lock = threading.Lock()

    def clone_working_copy(self, request):
        with self._lock:
            self.running += 1
            self.peak = max(self.peak, self.running)
        try:
            time.sleep(self.delay)
            if request.repository_url in self.fail_urls:
                raise CloneError(request.repository_url, request.target_path)
            with self._lock:
                self.cloned.append(request)
            return request.target_path
        finally:
            with self._lock:
                self.running -= 1

    def clone_submodules(self, request, target_path):
        with self._lock:
            self.recursed.append(target_path)


@pytest.fixture
def init_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(
        GitRepo, "init_submodule", lambda self, path: calls.append((self.path, path))
    )
    return calls


def _submodules(count):
    return [
        SubmoduleSpec(
            path=f"libs/m{i}", url=f"../m{i}.git", commit=f"{i:040x}", branch=None
        )
        for i in range(count)
    ]


PARENT_URL = "https://example.com/app.git"


@pytest.mark.short
def test_child_request():
    parent_request = build_clone_request(
        repository_url=PARENT_URL,
        update=True,
        recurse_submodules=["libs"],
        shallow_submodules=True,
        jobs=3,
        extra_clone_args=["--depth", "1"],
    )
    engine = RecursionEngine(FakeOrchestrator(), WorkerPool(3))
    submodule = _submodules(1)[0]

    child = engine.child_request(Path("/w/app"), PARENT_URL, submodule, parent_request)

    assert child.repository_url == "https://example.com/m0.git"
    assert child.target_path == Path("/w/app/libs/m0")
    assert child.cached is True
    assert child.update is True
    assert child.commit == submodule.commit
    assert child.recurse_submodules == RECURSE_ALL
    assert child.shallow_submodules is True
    assert child.jobs == 3
    # pass-through clone arguments only apply to the top level clone
    assert child.extra_clone_args == []


@pytest.mark.short
def test_child_request_blank_url():
    engine = RecursionEngine(FakeOrchestrator(), WorkerPool(1))
    submodule = SubmoduleSpec(path="libs/empty", url="  ", commit="a" * 40)

    with pytest.raises(ConfigurationError, match="submodule 'libs/empty' of"):
        engine.child_request(
            Path("/w/app"),
            PARENT_URL,
            submodule,
            build_clone_request(repository_url=PARENT_URL),
        )


@pytest.mark.short
def test_clone_all_bounded(tmp_path, init_calls):
    orchestrator = FakeOrchestrator(delay=0.05)
    request = build_clone_request(repository_url=PARENT_URL, jobs=2)

    RecursionEngine(orchestrator, WorkerPool(2)).clone_all(
        tmp_path, PARENT_URL, _submodules(5), request
    )

    assert len(orchestrator.cloned) == 5
    assert orchestrator.peak <= 2
    assert sorted(orchestrator.recursed) == sorted(
        tmp_path / f"libs/m{i}" for i in range(5)
    )
    assert sorted(path for _, path in init_calls) == [f"libs/m{i}" for i in range(5)]


@pytest.mark.short
def test_failure_does_not_stop_siblings(tmp_path, init_calls):
    orchestrator = FakeOrchestrator(fail_urls=["https://example.com/m1.git"])
    request = build_clone_request(repository_url=PARENT_URL, jobs=2)

    with pytest.raises(CloneError):
        RecursionEngine(orchestrator, WorkerPool(2)).clone_all(
            tmp_path, PARENT_URL, _submodules(4), request
        )

    assert sorted(r.repository_url for r in orchestrator.cloned) == [
        "https://example.com/m0.git",
        "https://example.com/m2.git",
        "https://example.com/m3.git",
    ]
    # the failed submodule is not registered with the parent
    assert "libs/m1" not in [path for _, path in init_calls]
