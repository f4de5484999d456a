"""CLI utility functions for cargowasm.

This module provides common utilities used across CLI commands including:
- Crate directory validation
- Error handling and formatting
"""

import sys
from pathlib import Path

from cargowasm.config.manifest import MANIFEST_FILENAME


class ErrorFormatter:
    """Formats and displays messages with ANSI color codes."""

    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Invalid manifest")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print(f"{ErrorFormatter.YELLOW}! {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Report cancellation and exit with the conventional status 130."""
        print()
        print("Interrupted by user")
        sys.exit(130)


class PathValidator:
    """Validates crate paths given on the command line."""

    @staticmethod
    def validate_crate_dir(crate_dir: Path) -> Path:
        """Check that crate_dir contains Cargo.toml and return the manifest path.

        Exits with status 1 when it does not.
        """
        manifest_path = Path(crate_dir) / MANIFEST_FILENAME
        if not manifest_path.is_file():
            ErrorFormatter.print_error(
                "Error: Cargo.toml not found",
                f"No {MANIFEST_FILENAME} in {crate_dir}",
            )
            sys.exit(1)
        return manifest_path
