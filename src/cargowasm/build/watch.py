"""Watch dependency registration.

In watch mode every file matching the configured patterns (relative to the
crate directory) becomes a dependency of the Cargo.toml module, so editing
Rust sources rebuilds the crate.
"""

import glob
import logging
from pathlib import Path
from typing import Iterable, List

from ..bundler import PluginContext
from ..config.options import BuildOptions

logger = logging.getLogger(__name__)


class WatchDependencyRegistrar:
    """Expands watch patterns and registers the matches with the bundler."""

    def __init__(self, options: BuildOptions):
        self.options = options

    def collect(self, crate_dir: Path) -> List[Path]:
        """
        Expand the watch patterns against crate_dir.

        Args:
            crate_dir: Directory containing Cargo.toml

        Returns:
            Matching regular files, deduplicated, in pattern order.
            Empty when watching is disabled.
        """
        if not self.options.watch:
            return []

        crate_dir = Path(crate_dir)
        seen = set()
        files = []

        for pattern in self.options.watch_patterns:
            for match in sorted(glob.glob(pattern, root_dir=str(crate_dir), recursive=True)):
                path = crate_dir / match
                if path in seen or not path.is_file():
                    continue
                seen.add(path)
                files.append(path)

        return files

    def register(self, context: PluginContext, files: Iterable[Path]) -> int:
        """Register files as watch dependencies. Returns how many were added."""
        count = 0
        for path in files:
            context.add_watch_file(str(path))
            count += 1

        if count:
            logger.debug(f"Watching {count} file(s)")
        return count
