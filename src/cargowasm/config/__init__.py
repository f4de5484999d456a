"""Configuration parsing modules for cargowasm."""

from .file_filter import FileFilter
from .manifest import CDYLIB, MANIFEST_FILENAME, CargoManifest, load_manifest
from .options import BuildOptions, OptionsResolver, default_import_hook

__all__ = [
    "BuildOptions",
    "OptionsResolver",
    "default_import_hook",
    "CargoManifest",
    "load_manifest",
    "CDYLIB",
    "MANIFEST_FILENAME",
    "FileFilter",
]
