"""Shared fixtures for cargowasm unit tests."""

import threading

import pytest

from cargowasm.bundler import EmittedAsset, ModuleInfo, PluginContext

CDYLIB_MANIFEST = """\
[package]
name = "my-crate"
version = "0.1.0"
edition = "2021"

[lib]
crate-type = ["cdylib"]

[dependencies]
wasm-bindgen = "0.2"
"""


class FakeContext(PluginContext):
    """In-memory stand-in for the bundler's plugin context."""

    def __init__(self, watch_mode: bool = False):
        self.watch_mode = watch_mode
        self.entries = set()
        self.warnings = []
        self.emitted = []
        self.watch_files = []
        self._lock = threading.Lock()

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def emit_file(self, asset: EmittedAsset) -> str:
        with self._lock:
            self.emitted.append(asset)
            return f"ref{len(self.emitted)}"

    def add_watch_file(self, path: str) -> None:
        self.watch_files.append(path)

    def get_module_info(self, module_id: str) -> ModuleInfo:
        return ModuleInfo(id=module_id, is_entry=module_id in self.entries)


@pytest.fixture
def context():
    """Bundler context outside watch mode."""
    return FakeContext()


@pytest.fixture
def crate_dir(tmp_path):
    """A cdylib crate with a source file and a Cargo.lock pinning wasm-bindgen."""
    crate = tmp_path / "my-crate"
    (crate / "src").mkdir(parents=True)
    (crate / "Cargo.toml").write_text(CDYLIB_MANIFEST)
    (crate / "src" / "lib.rs").write_text("use wasm_bindgen::prelude::*;\n")
    (crate / "Cargo.lock").write_text(
        "version = 3\n\n"
        "[[package]]\n"
        'name = "my-crate"\n'
        'version = "0.1.0"\n\n'
        "[[package]]\n"
        'name = "wasm-bindgen"\n'
        'version = "0.2.92"\n'
    )
    return crate


@pytest.fixture
def make_context():
    """Factory for contexts with a chosen watch mode."""
    return FakeContext
