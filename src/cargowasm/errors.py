"""
Error types for cargowasm.

Configuration errors are raised before any subprocess runs. Toolchain errors
cover everything the external programs (cargo, wasm-bindgen) can do wrong.
Optimizer errors are recoverable: the build keeps the unoptimized binary.
"""


class CargoWasmError(Exception):
    """Base exception for all cargowasm errors."""
    pass


class OptionsError(CargoWasmError):
    """Raised when plugin options are unknown or have the wrong type."""
    pass


class ManifestError(CargoWasmError):
    """Raised when Cargo.toml cannot be parsed or is not a cdylib crate."""
    pass


class ToolchainError(CargoWasmError):
    """Raised when cargo or its metadata query fails."""
    pass


class CompileError(ToolchainError):
    """Raised when `cargo build` exits with a non-zero status."""
    pass


class BindgenError(ToolchainError):
    """Raised when wasm-bindgen cannot be located or fails."""
    pass


class OptimizerError(CargoWasmError):
    """Raised when wasm-opt fails. Callers downgrade this to a warning."""
    pass


class BuildOrchestratorError(CargoWasmError):
    """Raised by the orchestrator when compilation fails in non-verbose mode."""
    pass
