"""cargowasm - Rust crates as WebAssembly modules in a JavaScript bundle.

Importing a crate's Cargo.toml from JavaScript compiles the crate with cargo,
runs wasm-bindgen (and wasm-opt for release builds) and replaces the import
with a small loader module.
"""

from .bundler import (
    EmittedAsset,
    FileUrlInfo,
    ModuleInfo,
    PluginContext,
    ResolvedId,
    TransformResult,
)
from .config import BuildOptions, OptionsResolver
from .errors import (
    BindgenError,
    BuildOrchestratorError,
    CargoWasmError,
    CompileError,
    ManifestError,
    OptimizerError,
    OptionsError,
    ToolchainError,
)
from .plugin import RustPlugin, rust

__version__ = "0.3.0"

__all__ = [
    "rust",
    "RustPlugin",
    "BuildOptions",
    "OptionsResolver",
    "PluginContext",
    "ModuleInfo",
    "EmittedAsset",
    "ResolvedId",
    "TransformResult",
    "FileUrlInfo",
    "CargoWasmError",
    "OptionsError",
    "ManifestError",
    "ToolchainError",
    "CompileError",
    "BindgenError",
    "OptimizerError",
    "BuildOrchestratorError",
]
