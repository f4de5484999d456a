"""
Command-line interface for cargowasm.

This module provides the `cargowasm` CLI tool for checking a crate before
handing it to the bundler and for removing generated glue.
"""

import argparse
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from cargowasm.build.build_utils import safe_rmtree
from cargowasm.build.cargo import CargoToolchain
from cargowasm.build.optimizer import WasmOptimizer
from cargowasm.build.output_locator import OUTPUT_NAMESPACE
from cargowasm.cli_utils import ErrorFormatter, PathValidator
from cargowasm.config.manifest import load_manifest
from cargowasm.errors import BindgenError, ManifestError, ToolchainError
from cargowasm.logging_setup import configure_logging
from cargowasm.packages.wasm_bindgen import WasmBindgen

VERSION = "0.3.0"


@dataclass
class CheckArgs:
    """Arguments for the check command."""

    crate_dir: Path
    verbose: bool = False


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    crate_dir: Path
    verbose: bool = False


def check_command(args: CheckArgs) -> None:
    """Check that a crate can be built.

    Examples:
        cargowasm check                # Check the crate in the current directory
        cargowasm check crates/engine  # Check a specific crate
    """
    print(f"cargowasm v{VERSION}")
    print()

    manifest_path = PathValidator.validate_crate_dir(args.crate_dir)

    try:
        manifest = load_manifest(manifest_path.read_text(encoding="utf-8"))
    except ManifestError as e:
        ErrorFormatter.print_error("Invalid Cargo.toml", str(e))
        sys.exit(1)

    print(f"Module name:   {manifest.module_name}")

    buildable = True

    try:
        target_dir = CargoToolchain().target_directory(args.crate_dir)
        print(f"Target dir:    {target_dir}")
    except ToolchainError as e:
        ErrorFormatter.print_error("cargo metadata failed", str(e))
        buildable = False

    bindgen = WasmBindgen(show_progress=False)
    try:
        version = bindgen.find_version(args.crate_dir)
        installed = bindgen.find_installed(version)
        if installed is not None:
            print(f"wasm-bindgen:  {version} ({installed})")
        else:
            print(f"wasm-bindgen:  {version} (downloaded on first build)")
    except BindgenError as e:
        ErrorFormatter.print_warning(str(e))
        buildable = False

    wasm_opt = shutil.which(WasmOptimizer.command_name())
    if wasm_opt:
        print(f"wasm-opt:      {wasm_opt}")
    else:
        ErrorFormatter.print_warning("wasm-opt not found; release builds will not be optimized")

    if buildable:
        ErrorFormatter.print_success("Crate is ready to build")
        sys.exit(0)

    sys.exit(1)


def clean_command(args: CleanArgs) -> None:
    """Remove generated glue for every crate sharing this crate's target directory."""
    PathValidator.validate_crate_dir(args.crate_dir)

    try:
        target_dir = CargoToolchain().target_directory(args.crate_dir)
    except ToolchainError as e:
        ErrorFormatter.print_error("cargo metadata failed", str(e))
        sys.exit(1)

    output_root = target_dir / OUTPUT_NAMESPACE
    if not output_root.exists():
        print(f"Nothing to clean in {target_dir}")
        sys.exit(0)

    try:
        safe_rmtree(output_root)
    except OSError as e:
        ErrorFormatter.print_error("Clean failed", str(e))
        sys.exit(1)

    ErrorFormatter.print_success(f"Removed {output_root}")
    sys.exit(0)


def main() -> None:
    """cargowasm - Rust crates as WebAssembly modules for JavaScript bundlers."""
    parser = argparse.ArgumentParser(
        prog="cargowasm",
        description="Check and clean Rust crates built by the cargowasm bundler plugin",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cargowasm {VERSION}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    for command, help_text in (
        ("check", "Check that a crate can be built"),
        ("clean", "Remove generated wasm-bindgen output"),
    ):
        command_parser = subparsers.add_parser(command, help=help_text)
        command_parser.add_argument(
            "crate_dir",
            nargs="?",
            type=Path,
            default=Path.cwd(),
            help="Crate directory containing Cargo.toml (default: current directory)",
        )
        command_parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Show verbose output",
        )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    configure_logging(parsed_args.verbose)

    try:
        if parsed_args.command == "check":
            check_command(CheckArgs(crate_dir=parsed_args.crate_dir, verbose=parsed_args.verbose))
        elif parsed_args.command == "clean":
            clean_command(CleanArgs(crate_dir=parsed_args.crate_dir, verbose=parsed_args.verbose))
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()


if __name__ == "__main__":
    main()
