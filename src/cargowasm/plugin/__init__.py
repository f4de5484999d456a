"""Bundler-facing hooks for cargowasm."""

from .bridge import VirtualModuleBridge, is_synthetic_id
from .rust_plugin import RustPlugin, rust

__all__ = [
    "RustPlugin",
    "rust",
    "VirtualModuleBridge",
    "is_synthetic_id",
]
