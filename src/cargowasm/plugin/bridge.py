"""
Virtual module bridge.

The loader imports its glue from `./.__cargowasm__<name>/index.js`, a
directory that does not exist next to Cargo.toml. These hooks let the bundler
resolve such ids (and the relative imports made from inside them) and load
them from the real wasm-bindgen output directory.
"""

import logging
import os
from typing import Optional

from ..build.session import SYNTHETIC_DIR_PREFIX, FakeDirMapping
from ..bundler import ResolvedId

logger = logging.getLogger(__name__)


def _synthetic_root(path: str) -> Optional[str]:
    """The synthetic directory containing path, or None."""
    start = path.rfind(os.sep + SYNTHETIC_DIR_PREFIX)
    if start < 0:
        return None

    end = path.find(os.sep, start + 1)
    return path if end < 0 else path[:end]


def synthetic_target(source: str, importer: Optional[str]) -> Optional[str]:
    """
    Normalized path of an import into a synthetic directory.

    Only relative specifiers qualify. Imports made from a synthetic module
    must stay inside that module's synthetic directory. Other importers may
    only reach a synthetic directory that sits next to them.

    Returns:
        The absolute synthetic path, or None when the import is not ours
    """
    if not importer or not source.startswith("."):
        return None

    importer = os.path.normpath(importer)
    path = os.path.normpath(os.path.join(os.path.dirname(importer), source))

    root = _synthetic_root(path)
    if root is None:
        return None

    importer_root = _synthetic_root(importer)
    if importer_root is not None:
        return path if root == importer_root else None

    return path if os.path.dirname(root) == os.path.dirname(importer) else None


def is_synthetic_id(source: str, importer: Optional[str]) -> bool:
    """Whether an import specifier points into a synthetic directory."""
    return synthetic_target(source, importer) is not None


class VirtualModuleBridge:
    """Resolve and load hooks backed by a FakeDirMapping."""

    def __init__(self, fake_dirs: FakeDirMapping):
        self.fake_dirs = fake_dirs

    def resolve_id(self, source: str, importer: Optional[str]) -> Optional[ResolvedId]:
        """
        Resolve a synthetic import to an absolute synthetic path.

        Returns:
            ResolvedId marked side-effect free, or None for ids that are not ours
        """
        path = synthetic_target(source, importer)
        if path is None:
            return None

        logger.debug(f"Resolving path {path}")

        return ResolvedId(id=path, module_side_effects=False)

    def load(self, module_id: str) -> Optional[str]:
        """
        Load a synthetic module from the real output directory.

        Returns:
            File contents, or None when no mapping covers the id
        """
        path = self.fake_dirs.lookup(module_id)
        if path is None:
            return None

        logger.debug(f"Loading file {path}")

        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
