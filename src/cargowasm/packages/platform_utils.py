"""Platform Detection Utilities.

This module maps the host platform to the target triple used in
wasm-bindgen release archive names.

Supported Platforms:
    - Linux: x86_64 (musl build), aarch64
    - macOS: x86_64, arm64
    - Windows: x86_64
"""

import platform


class PlatformError(Exception):
    """Raised when platform detection fails or platform is unsupported."""

    pass


class PlatformDetector:
    """Detects the current platform and architecture for tool selection."""

    @staticmethod
    def normalize_machine(machine: str) -> str:
        """Normalize an architecture name to x86_64 / aarch64."""
        machine = machine.lower()
        if machine in ("x86_64", "amd64"):
            return "x86_64"
        if machine in ("aarch64", "arm64"):
            return "aarch64"
        return machine

    @staticmethod
    def detect_wasm_bindgen_target() -> str:
        """Detect the release triple for wasm-bindgen binaries.

        Returns:
            Target triple (e.g., 'x86_64-unknown-linux-musl')

        Raises:
            PlatformError: If no prebuilt wasm-bindgen exists for this host
        """
        system = platform.system().lower()
        machine = PlatformDetector.normalize_machine(platform.machine())

        if system == "linux":
            if machine == "x86_64":
                return "x86_64-unknown-linux-musl"
            elif machine == "aarch64":
                return "aarch64-unknown-linux-gnu"
        elif system == "darwin":
            if machine == "x86_64":
                return "x86_64-apple-darwin"
            elif machine == "aarch64":
                return "aarch64-apple-darwin"
        elif system == "windows":
            if machine == "x86_64":
                return "x86_64-pc-windows-msvc"

        raise PlatformError(
            f"Unsupported platform for prebuilt wasm-bindgen: {system} {machine}. "
            + "Install it with `cargo install wasm-bindgen-cli` instead."
        )

    @staticmethod
    def executable_name(name: str) -> str:
        """Append .exe on Windows."""
        if platform.system().lower() == "windows":
            return f"{name}.exe"
        return name
