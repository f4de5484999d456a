"""Cache management for downloaded tools.

Cache Structure:
    ~/.cargowasm/cache/
    ├── archives/
    │   └── wasm-bindgen-0.2.92-x86_64-unknown-linux-musl.tar.gz
    └── tools/
        └── wasm-bindgen/
            └── 0.2.92/
                └── wasm-bindgen[.exe]

Tools are keyed by name and exact version so crates pinned to different
wasm-bindgen versions can be built side by side.
"""

import os
from pathlib import Path
from typing import Optional

CACHE_DIR_ENV = "CARGOWASM_CACHE_DIR"


class Cache:
    """Manages the cargowasm tool cache.

    The cache lives in the user's home directory, or wherever the
    CARGOWASM_CACHE_DIR environment variable points.
    """

    def __init__(self, cache_root: Optional[Path] = None):
        """Initialize cache manager.

        Args:
            cache_root: Explicit cache root. Overrides the environment variable.
        """
        if cache_root is not None:
            self.cache_root = Path(cache_root).resolve()
        elif os.environ.get(CACHE_DIR_ENV):
            self.cache_root = Path(os.environ[CACHE_DIR_ENV]).resolve()
        else:
            self.cache_root = Path.home() / ".cargowasm" / "cache"

    @property
    def archives_dir(self) -> Path:
        """Directory for downloaded release archives."""
        return self.cache_root / "archives"

    @property
    def tools_dir(self) -> Path:
        """Directory for extracted tool binaries."""
        return self.cache_root / "tools"

    def get_tool_dir(self, name: str, version: str) -> Path:
        """Get the directory holding one version of a tool.

        Args:
            name: Tool name (e.g., 'wasm-bindgen')
            version: Exact version string (e.g., '0.2.92')

        Returns:
            Path to the tool's version directory
        """
        return self.tools_dir / name / version

    def ensure_directories(self) -> None:
        """Create the cache directories if they do not exist."""
        self.archives_dir.mkdir(parents=True, exist_ok=True)
        self.tools_dir.mkdir(parents=True, exist_ok=True)
