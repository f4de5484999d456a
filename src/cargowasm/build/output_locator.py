"""Output location resolution.

cargo decides where artifacts go (a workspace shares one target directory,
and CARGO_TARGET_DIR can move it anywhere), so every build asks cargo
instead of caching the answer.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ..config.options import BuildOptions
from .build_utils import safe_rmtree
from .cargo import WASM_TARGET, CargoToolchain

logger = logging.getLogger(__name__)

OUTPUT_NAMESPACE = "cargowasm"


@dataclass
class BuildTarget:
    """Where one crate build reads and writes.

    Attributes:
        module_name: Normalized crate name (e.g., 'my_crate')
        crate_dir: Directory containing Cargo.toml
        target_dir: cargo's target directory
        out_dir: Directory wasm-bindgen writes glue into
        wasm_path: Binary produced by cargo
    """

    module_name: str
    crate_dir: Path
    target_dir: Path
    out_dir: Path
    wasm_path: Path


class OutputLocator:
    """Derives output paths from cargo metadata and clears stale output."""

    def __init__(self, cargo: CargoToolchain):
        self.cargo = cargo

    def resolve(self, crate_dir: Path, module_name: str, options: BuildOptions) -> BuildTarget:
        """
        Resolve the output paths for a crate and remove the previous output.

        Args:
            crate_dir: Directory containing Cargo.toml
            module_name: Normalized crate name
            options: Resolved build options (debug selects the profile)

        Returns:
            BuildTarget

        Raises:
            ToolchainError: If the metadata query fails
        """
        target_dir = self.cargo.target_directory(crate_dir)
        logger.debug(f"Using target directory {target_dir}")

        out_dir = (target_dir / OUTPUT_NAMESPACE / module_name).resolve()
        profile = "debug" if options.debug else "release"
        wasm_path = (target_dir / WASM_TARGET / profile / f"{module_name}.wasm").resolve()

        logger.debug(f"Using rustc output {wasm_path}")
        logger.debug(f"Using output directory {out_dir}")

        safe_rmtree(out_dir)

        return BuildTarget(
            module_name=module_name,
            crate_dir=Path(crate_dir),
            target_dir=target_dir,
            out_dir=out_dir,
            wasm_path=wasm_path,
        )
