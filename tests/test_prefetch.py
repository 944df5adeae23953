"""Tests for bulk prefetching."""

import threading
from collections import Counter

import pytest

from gitcache.exceptions import MirrorError
from gitcache.git.cache import CacheRepository
from gitcache.model import build_prefetch_request
from gitcache.prefetch import Prefetcher


def _url(name):
    return f"https://example.com/{name}.git"


class GraphPrefetcher(Prefetcher):
    """Prefetcher whose repositories and submodules come from a dict."""

    def __init__(self, cache_base_dir, request, graph, failing=()):
        super().__init__(cache_base_dir, request)
        self.graph = graph
        self.failing = set(failing)
        self.calls = Counter()
        self._lock = threading.Lock()

    def prefetch_url(self, url):
        with self._lock:
            self.calls[url] += 1
        if url in self.failing:
            raise MirrorError(url, "/nowhere", "fatal: repository not found")
        if not self.request.recurse_submodules:
            return []
        return self.graph[url]


GRAPH = {
    _url("a"): [_url("b"), _url("c")],
    _url("b"): [_url("c")],
    _url("c"): [],
}


class TestPrefetcherCoordination:
    @pytest.mark.short
    def test_recursive_graph_each_repo_once(self, tmp_path):
        request = build_prefetch_request(
            repository_urls=[_url("a")], recurse_submodules=True, jobs=3
        )
        prefetcher = GraphPrefetcher(tmp_path, request, GRAPH)

        report = prefetcher.run()

        assert report.ok
        assert report.total == 3
        assert dict(prefetcher.calls) == {_url("a"): 1, _url("b"): 1, _url("c"): 1}

    @pytest.mark.short
    def test_duplicate_seeds_with_equivalent_urls(self, tmp_path):
        request = build_prefetch_request(
            repository_urls=[_url("c"), "https://example.com/c", _url("c")], jobs=2
        )
        prefetcher = GraphPrefetcher(tmp_path, request, GRAPH)

        report = prefetcher.run()

        assert report.total == 1
        assert sum(prefetcher.calls.values()) == 1

    @pytest.mark.short
    def test_failure_is_isolated(self, tmp_path, capture_logs):
        request = build_prefetch_request(
            repository_urls=[_url("a"), _url("b"), _url("c")], jobs=2
        )
        prefetcher = GraphPrefetcher(tmp_path, request, GRAPH, failing=[_url("b")])

        report = prefetcher.run()

        assert not report.ok
        assert report.total == 3
        assert list(report.failed) == [_url("b")]
        assert isinstance(report.failed[_url("b")], MirrorError)
        assert prefetcher.calls[_url("a")] == 1
        assert prefetcher.calls[_url("c")] == 1
        assert "Finished pre-fetching 3 repositories." in capture_logs.getvalue()

    @pytest.mark.short
    def test_failed_parent_discovers_nothing(self, tmp_path):
        request = build_prefetch_request(
            repository_urls=[_url("a")], recurse_submodules=True, jobs=2
        )
        prefetcher = GraphPrefetcher(tmp_path, request, GRAPH, failing=[_url("a")])

        report = prefetcher.run()

        assert report.total == 1
        assert list(report.failed) == [_url("a")]

    @pytest.mark.short
    def test_no_seeds(self, tmp_path):
        request = build_prefetch_request(repository_urls=[])
        report = GraphPrefetcher(tmp_path, request, GRAPH).run()
        assert report.ok
        assert report.total == 0


@pytest.mark.integration
@pytest.mark.requires_git
class TestPrefetcherWithGit:
    def test_prefetch_mirrors(self, remotes, cache_dir):
        for name in ("one", "two", "three"):
            remotes.create(name)

        request = build_prefetch_request(
            repository_urls=[remotes.url(n) for n in ("one", "two", "three")], jobs=2
        )
        report = Prefetcher(cache_dir, request).run()

        assert report.ok
        assert report.total == 3
        for name in ("one", "two", "three"):
            mirror = cache_dir / "example.com" / f"{name}.git"
            assert CacheRepository(cache_dir, remotes.url(name)).repo.is_initialized()
            assert mirror.with_name(f"{name}.git.lock").exists()

    def test_prefetch_recursive(self, remotes, cache_dir):
        remotes.create("lib")
        app = remotes.create("app")
        remotes.add_submodule(app, "lib", "lib")

        request = build_prefetch_request(
            repository_urls=[remotes.url("app")], recurse_submodules=True
        )
        report = Prefetcher(cache_dir, request).run()

        assert report.ok
        assert report.total == 2
        assert CacheRepository(cache_dir, remotes.url("lib")).repo.is_initialized()

    def test_update_fetches_new_commits(self, remotes, cache_dir):
        repo = remotes.create("one")
        urls = [remotes.url("one")]
        Prefetcher(cache_dir, build_prefetch_request(repository_urls=urls)).run()

        new_commit = remotes.commit(repo, {"file.txt": "new\n"})
        cached = CacheRepository(cache_dir, remotes.url("one"))

        Prefetcher(cache_dir, build_prefetch_request(repository_urls=urls)).run()
        assert not cached.has_commit(new_commit)

        Prefetcher(
            cache_dir, build_prefetch_request(repository_urls=urls, update=True)
        ).run()
        assert cached.has_commit(new_commit)

    def test_missing_remote_reported(self, remotes, cache_dir):
        request = build_prefetch_request(repository_urls=[remotes.url("missing")])
        report = Prefetcher(cache_dir, request).run()

        assert list(report.failed) == [remotes.url("missing")]
        assert isinstance(report.failed[remotes.url("missing")], MirrorError)
