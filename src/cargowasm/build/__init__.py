"""
Build system components for cargowasm.

This module provides the build pipeline implementation including:
- cargo compilation to wasm32-unknown-unknown
- Output directory resolution
- wasm-opt optimization
- Loader code generation
- Build orchestration and per-build session state
"""

from .asset_publisher import AssetPublisher
from .build_lock import BuildLock, LockTicket
from .cargo import WASM_TARGET, CargoToolchain
from .loader_generator import LoaderCodeGenerator
from .optimizer import WasmOptimizer
from .orchestrator import COMPILATION_FAILED, BuildOrchestrator
from .output_locator import OUTPUT_NAMESPACE, BuildTarget, OutputLocator
from .session import (
    SYNTHETIC_DIR_PREFIX,
    BuildSession,
    DirMapping,
    EmittedAssetRegistry,
    FakeDirMapping,
    glue_import_path,
    synthetic_dir_name,
)
from .watch import WatchDependencyRegistrar

__all__ = [
    "AssetPublisher",
    "BuildLock",
    "LockTicket",
    "CargoToolchain",
    "WASM_TARGET",
    "LoaderCodeGenerator",
    "WasmOptimizer",
    "BuildOrchestrator",
    "COMPILATION_FAILED",
    "BuildTarget",
    "OutputLocator",
    "OUTPUT_NAMESPACE",
    "BuildSession",
    "DirMapping",
    "EmittedAssetRegistry",
    "FakeDirMapping",
    "SYNTHETIC_DIR_PREFIX",
    "glue_import_path",
    "synthetic_dir_name",
    "WatchDependencyRegistrar",
]
