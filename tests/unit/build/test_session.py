"""Unit tests for per-build session state."""

import os
import threading
import time

import pytest

from cargowasm.build.session import (
    BuildSession,
    DirMapping,
    EmittedAssetRegistry,
    FakeDirMapping,
    glue_import_path,
    synthetic_dir_name,
)


def test_synthetic_names():
    assert synthetic_dir_name("my_crate") == ".__cargowasm__my_crate"
    assert glue_import_path("my_crate") == "./.__cargowasm__my_crate/index.js"


class TestFakeDirMapping:
    """Test cases for FakeDirMapping."""

    def test_lookup_translates_prefix(self):
        mapping = FakeDirMapping()
        mapping.add("/app/crate/.__cargowasm__foo", "/app/target/cargowasm/foo")

        assert mapping.lookup("/app/crate/.__cargowasm__foo/index.js") == "/app/target/cargowasm/foo/index.js"
        assert mapping.lookup("/app/crate/.__cargowasm__foo") == "/app/target/cargowasm/foo"

    def test_lookup_requires_path_boundary(self):
        mapping = FakeDirMapping()
        mapping.add("/app/crate/.__cargowasm__foo", "/out/foo")

        assert mapping.lookup("/app/crate/.__cargowasm__foo_bar/index.js") is None

    def test_unknown_id(self):
        assert FakeDirMapping().lookup("/app/src/main.js") is None

    def test_latest_mapping_wins(self):
        mapping = FakeDirMapping()
        mapping.add("/app/.__cargowasm__foo", "/old")
        mapping.add("/app/.__cargowasm__foo", "/new")

        assert mapping.lookup("/app/.__cargowasm__foo/index.js") == "/new/index.js"
        assert len(mapping) == 2

    def test_native_separator(self):
        source = os.path.join("app", ".__cargowasm__foo")
        mapping = DirMapping(source=source, target="out")

        assert mapping.matches(source + os.sep + "index.js")

    def test_clear(self):
        mapping = FakeDirMapping()
        mapping.add("/a/.__cargowasm__x", "/b")
        mapping.clear()

        assert len(mapping) == 0
        assert list(mapping) == []


class TestEmittedAssetRegistry:
    """Test cases for EmittedAssetRegistry."""

    def test_membership(self):
        registry = EmittedAssetRegistry()
        registry.add("ref1")

        assert "ref1" in registry
        assert "ref2" not in registry
        assert len(registry) == 1

        registry.clear()
        assert "ref1" not in registry


class TestBuildSession:
    """Test cases for BuildSession."""

    def test_reset_clears_everything(self):
        session = BuildSession()
        session.fake_dirs.add("/a/.__cargowasm__x", "/b")
        session.assets.add("ref1")
        session.memoize("/a/Cargo.toml", lambda: "built")

        session.reset()

        assert len(session.fake_dirs) == 0
        assert len(session.assets) == 0
        assert session.lock_ticket is None
        assert session.memoize("/a/Cargo.toml", lambda: "rebuilt") == "rebuilt"

    def test_memoize_runs_once(self):
        session = BuildSession()
        calls = []

        def build():
            calls.append(1)
            return "built"

        assert session.memoize("k", build) == "built"
        assert session.memoize("k", build) == "built"
        assert len(calls) == 1

    def test_memoize_caches_failures(self):
        session = BuildSession()
        calls = []

        def build():
            calls.append(1)
            raise RuntimeError("boom")

        for _ in range(2):
            with pytest.raises(RuntimeError, match="boom"):
                session.memoize("k", build)

        assert len(calls) == 1

    def test_concurrent_callers_share_result(self):
        session = BuildSession()
        calls = []
        results = []

        def build():
            calls.append(1)
            time.sleep(0.05)
            return object()

        def worker():
            results.append(session.memoize("k", build))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert len(results) == 4
        assert all(r is results[0] for r in results)
