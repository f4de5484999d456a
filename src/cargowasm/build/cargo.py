"""Cargo invocation.

This module runs cargo for the two things the build needs from it:
compiling the crate to wasm32-unknown-unknown and querying the shared
target directory.

Design:
    - `cargo build` output is streamed to the terminal, not captured
    - `cargo metadata` output is captured and decoded as JSON
    - No timeouts: a stalled cargo stalls the build, as it would on the command line
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List

from ..config.options import BuildOptions
from ..errors import CompileError, ToolchainError

logger = logging.getLogger(__name__)

WASM_TARGET = "wasm32-unknown-unknown"


class CargoToolchain:
    """Runs cargo against a crate directory."""

    def __init__(self, cargo: str = "cargo"):
        """
        Args:
            cargo: Name or path of the cargo executable
        """
        self.cargo = cargo

    def build_command(self, options: BuildOptions) -> List[str]:
        """Build the `cargo build` command line for a library wasm build."""
        cmd = [self.cargo, "build", "--lib", "--target", WASM_TARGET]

        if not options.debug:
            cmd.append("--release")

        cmd.extend(options.cargo_args)
        return cmd

    def compile(self, crate_dir: Path, options: BuildOptions) -> None:
        """
        Compile the crate to WebAssembly.

        Args:
            crate_dir: Directory containing Cargo.toml
            options: Resolved build options

        Raises:
            CompileError: If cargo is missing or the build fails
        """
        cmd = self.build_command(options)
        logger.debug(f"Running {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, cwd=str(crate_dir))
        except OSError as e:
            raise CompileError(
                f"Failed to run {self.cargo}: {e}. Ensure the Rust toolchain is installed."
            ) from e

        if result.returncode != 0:
            raise CompileError(f"cargo build exited with code {result.returncode}")

    def metadata(self, crate_dir: Path) -> Dict[str, Any]:
        """
        Query cargo metadata for the crate (without dependencies).

        Raises:
            ToolchainError: If cargo fails or prints something that is not JSON
        """
        cmd = [self.cargo, "metadata", "--format-version", "1", "--no-deps", "--color", "never"]

        try:
            result = subprocess.run(
                cmd,
                cwd=str(crate_dir),
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ToolchainError(f"Failed to run {self.cargo}: {e}") from e

        if result.returncode != 0:
            raise ToolchainError(
                f"cargo metadata failed in {crate_dir}\n"
                + f"stderr: {result.stderr}"
            )

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ToolchainError(f"cargo metadata returned invalid JSON: {e}") from e

    def target_directory(self, crate_dir: Path) -> Path:
        """Return cargo's target directory for the crate (may be shared by a workspace)."""
        metadata = self.metadata(crate_dir)
        target_dir = metadata.get("target_directory")
        if not target_dir:
            raise ToolchainError("cargo metadata did not report a target_directory")
        return Path(target_dir)
