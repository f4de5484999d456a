"""Unit tests for BuildOrchestrator."""

import logging
import os
import threading
import time
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from cargowasm.build.build_lock import BuildLock
from cargowasm.build.orchestrator import COMPILATION_FAILED, BuildOrchestrator
from cargowasm.build.session import BuildSession
from cargowasm.config.options import BuildOptions
from cargowasm.errors import BuildOrchestratorError, CompileError, ManifestError, OptimizerError

WASM = b"\0asm\x01\0\0\0"

CRATE_MANIFEST = """\
[package]
name = "{name}"

[lib]
crate-type = ["cdylib"]
"""


def _fake_generate(crate_dir, wasm_path, out_dir, options):
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "index.js").write_text("export default function init() {}\n")
    (out_dir / "index_bg.wasm").write_bytes(WASM)
    return out_dir / "index_bg.wasm"


class Harness:
    """Orchestrator wired to mock tools writing into a temporary target dir."""

    def __init__(self, tmp_path, **options):
        self.target_dir = tmp_path / "target"
        self.cargo = Mock()
        self.cargo.target_directory.return_value = self.target_dir
        self.bindgen = Mock()
        self.bindgen.generate.side_effect = _fake_generate
        self.optimizer = Mock()
        self.session = BuildSession()
        self.options = BuildOptions(**options)
        self.orchestrator = BuildOrchestrator(
            self.options,
            self.session,
            cargo=self.cargo,
            bindgen=self.bindgen,
            optimizer=self.optimizer,
            lock=BuildLock(threading.Lock()),
        )


@pytest.fixture
def manifest_id(crate_dir):
    return str(crate_dir / "Cargo.toml")


@pytest.fixture
def source(crate_dir):
    return (crate_dir / "Cargo.toml").read_text()


class TestBuild:
    """End-to-end pipeline behavior with mocked tools."""

    def test_invalid_manifest_runs_no_tools(self, tmp_path, context, crate_dir, manifest_id):
        harness = Harness(tmp_path)

        with patch("subprocess.run") as mock_run:
            with pytest.raises(ManifestError, match="cdylib"):
                harness.orchestrator.build(context, '[package]\nname = "my-crate"\n', manifest_id)

        mock_run.assert_not_called()
        harness.cargo.compile.assert_not_called()
        harness.bindgen.generate.assert_not_called()

    def test_manifest_error_is_not_masked(self, tmp_path, context, manifest_id):
        harness = Harness(tmp_path, verbose=False)

        with pytest.raises(ManifestError):
            harness.orchestrator.build(context, "[package\n", manifest_id)

    def test_entry_loader(self, tmp_path, context, crate_dir, manifest_id, source):
        context.entries.add(manifest_id)
        harness = Harness(tmp_path)

        result = harness.orchestrator.build(context, source, manifest_id)

        assert result.code.startswith('import init from "./.__cargowasm__my_crate/index.js";')
        assert "init(import.meta.ROLLUP_FILE_URL_ref1).catch(console.error);" in result.code
        assert result.module_side_effects is None
        assert result.map == {"mappings": ""}

        assert len(context.emitted) == 1
        assert context.emitted[0].name == "my_crate.wasm"
        assert context.emitted[0].source == WASM
        assert "ref1" in harness.session.assets

    def test_library_loader(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path)

        result = harness.orchestrator.build(context, source, manifest_id)

        assert "export default async (opt = {}) => {" in result.code
        assert result.module_side_effects is False

    def test_inline_loader_emits_no_asset(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, inline_wasm=True)

        result = harness.orchestrator.build(context, source, manifest_id)

        assert "base64_decode(" in result.code
        assert context.emitted == []

    def test_registers_synthetic_dir(self, tmp_path, context, crate_dir, manifest_id, source):
        harness = Harness(tmp_path)

        harness.orchestrator.build(context, source, manifest_id)

        synthetic = os.path.join(str(crate_dir), ".__cargowasm__my_crate", "index.js")
        real = harness.session.fake_dirs.lookup(synthetic)
        assert real == str((harness.target_dir / "cargowasm" / "my_crate" / "index.js").resolve())
        assert Path(real).read_text() == "export default function init() {}\n"

    def test_tool_order(self, tmp_path, context, crate_dir, manifest_id, source):
        harness = Harness(tmp_path, debug=False)
        calls = Mock()
        calls.attach_mock(harness.cargo.compile, "compile")
        calls.attach_mock(harness.bindgen.generate, "generate")
        calls.attach_mock(harness.optimizer.optimize, "optimize")

        harness.orchestrator.build(context, source, manifest_id)

        assert [c[0] for c in calls.mock_calls] == ["compile", "generate", "optimize"]
        wasm_path = harness.bindgen.generate.call_args[0][1]
        assert wasm_path == (harness.target_dir / "wasm32-unknown-unknown" / "release" / "my_crate.wasm").resolve()

    def test_debug_skips_optimizer(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, debug=True)

        harness.orchestrator.build(context, source, manifest_id)

        harness.optimizer.optimize.assert_not_called()

    def test_optimizer_failure_is_a_warning(self, tmp_path, context, manifest_id, source, caplog):
        harness = Harness(tmp_path)
        harness.optimizer.optimize.side_effect = OptimizerError("wasm-opt exited with code 1")

        with caplog.at_level(logging.DEBUG, logger="cargowasm"):
            result = harness.orchestrator.build(context, source, manifest_id)

        assert context.warnings == ["wasm-opt failed: wasm-opt exited with code 1"]
        assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []
        assert "wasm-opt failed: wasm-opt exited with code 1" in caplog.messages
        assert context.emitted[0].source == WASM
        assert result.code


class TestErrors:
    """Error reporting in verbose and non-verbose mode."""

    def test_non_verbose_hides_cause(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, verbose=False)
        harness.cargo.compile.side_effect = CompileError("cargo build exited with code 101")

        with pytest.raises(BuildOrchestratorError) as exc_info:
            harness.orchestrator.build(context, source, manifest_id)

        assert str(exc_info.value) == COMPILATION_FAILED
        assert exc_info.value.__cause__ is None
        assert exc_info.value.__suppress_context__

    def test_verbose_propagates_original(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, verbose=True)
        harness.cargo.compile.side_effect = CompileError("cargo build exited with code 101")

        with pytest.raises(CompileError, match="101"):
            harness.orchestrator.build(context, source, manifest_id)

    def test_lock_released_after_failure(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path)
        harness.bindgen.generate.side_effect = CompileError("boom")

        with pytest.raises(BuildOrchestratorError):
            harness.orchestrator.build(context, source, manifest_id)

        assert not harness.orchestrator.lock.locked()
        assert harness.session.lock_ticket is None


class TestWatch:
    """Watch dependency registration during builds."""

    def test_registers_sources(self, tmp_path, context, crate_dir, manifest_id, source):
        harness = Harness(tmp_path, watch=True, debug=True)

        harness.orchestrator.build(context, source, manifest_id)

        assert context.watch_files == [str(crate_dir / "src" / "lib.rs")]

    def test_registers_sources_when_build_fails(self, tmp_path, context, crate_dir, manifest_id, source):
        harness = Harness(tmp_path, watch=True)
        harness.cargo.compile.side_effect = CompileError("syntax error")

        with pytest.raises(BuildOrchestratorError):
            harness.orchestrator.build(context, source, manifest_id)

        assert context.watch_files == [str(crate_dir / "src" / "lib.rs")]

    def test_no_watch_outside_watch_mode(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, watch=False)

        harness.orchestrator.build(context, source, manifest_id)

        assert context.watch_files == []

    def test_memoized_build_registers_once(self, tmp_path, context, crate_dir, manifest_id, source):
        harness = Harness(tmp_path, watch=True, debug=True)

        harness.orchestrator.build(context, source, manifest_id)
        harness.orchestrator.build(context, source, manifest_id)

        assert context.watch_files == [str(crate_dir / "src" / "lib.rs")]

    def test_memoized_failure_registers_once(self, tmp_path, context, crate_dir, manifest_id, source):
        harness = Harness(tmp_path, watch=True)
        harness.cargo.compile.side_effect = CompileError("syntax error")

        for _ in range(2):
            with pytest.raises(BuildOrchestratorError):
                harness.orchestrator.build(context, source, manifest_id)

        assert context.watch_files == [str(crate_dir / "src" / "lib.rs")]

    def test_glob_failure_keeps_build_error(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, watch=True, verbose=True)
        harness.cargo.compile.side_effect = CompileError("cargo build exited with code 101")

        with patch.object(harness.orchestrator.watcher, "collect", side_effect=PermissionError("denied")):
            with pytest.raises(CompileError, match="101"):
                harness.orchestrator.build(context, source, manifest_id)

        assert context.watch_files == []
        assert context.warnings == ["Could not watch crate sources: denied"]

    def test_glob_failure_keeps_build_result(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path, watch=True)

        with patch.object(harness.orchestrator.watcher, "collect", side_effect=PermissionError("denied")):
            result = harness.orchestrator.build(context, source, manifest_id)

        assert result.code
        assert context.warnings == ["Could not watch crate sources: denied"]


class TestConcurrency:
    """Memoization and serialization of builds."""

    def test_same_manifest_builds_once(self, tmp_path, context, manifest_id, source):
        harness = Harness(tmp_path)

        first = harness.orchestrator.build(context, source, manifest_id)
        second = harness.orchestrator.build(context, source, manifest_id)

        assert first is second
        harness.cargo.compile.assert_called_once()
        assert len(context.emitted) == 1

    def test_different_crates_never_overlap(self, tmp_path, context):
        harness = Harness(tmp_path)
        active = []
        overlaps = []

        def slow_compile(crate_dir, options):
            active.append(crate_dir)
            if len(active) > 1:
                overlaps.append(list(active))
            time.sleep(0.02)
            active.remove(crate_dir)

        harness.cargo.compile.side_effect = slow_compile

        crates = []
        for name in ("alpha", "beta", "gamma"):
            crate = tmp_path / name
            crate.mkdir()
            (crate / "Cargo.toml").write_text(CRATE_MANIFEST.format(name=name))
            crates.append(crate)

        errors = []

        def worker(crate):
            try:
                harness.orchestrator.build(
                    context, (crate / "Cargo.toml").read_text(), str(crate / "Cargo.toml")
                )
            except Exception as e:  # pragma: no cover - surfaced by the assert below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(crate,)) for crate in crates]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert overlaps == []
        assert harness.cargo.compile.call_count == 3
        assert sorted(a.name for a in context.emitted) == ["alpha.wasm", "beta.wasm", "gamma.wasm"]
