"""Tool management for cargowasm.

This module handles locating, downloading and caching the external tools
the build depends on.
"""

from .cache import Cache
from .downloader import ChecksumError, DownloadError, ExtractionError, PackageDownloader
from .platform_utils import PlatformDetector, PlatformError
from .wasm_bindgen import GENERATED_WASM_FILENAME, GLUE_FILENAME, WasmBindgen

__all__ = [
    "Cache",
    "PackageDownloader",
    "DownloadError",
    "ChecksumError",
    "ExtractionError",
    "PlatformDetector",
    "PlatformError",
    "WasmBindgen",
    "GLUE_FILENAME",
    "GENERATED_WASM_FILENAME",
]
