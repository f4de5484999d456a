"""Build utilities for cargowasm.

This module provides filesystem helpers used around the external tools:
removing stale output directories and replacing files atomically.
"""

import os
import shutil
import stat
import sys
import time
from pathlib import Path
from typing import Any, Callable


def remove_readonly(func: Callable[[str], None], path: str, excinfo: Any) -> None:
    """
    Error handler for shutil.rmtree on Windows.

    Clears the read-only attribute and retries the failed operation.

    Args:
        func: The function that raised the exception
        path: The path to the file/directory
        excinfo: Exception or exc_info tuple (unused)
    """
    os.chmod(path, stat.S_IWRITE)
    func(path)


def safe_rmtree(path: Path, max_retries: int = 3, retry_delay: float = 0.5) -> None:
    """
    Remove a directory tree, retrying when files are briefly locked.

    Missing directories are ignored.

    Args:
        path: Path to directory to remove
        max_retries: Maximum number of attempts
        retry_delay: Seconds to wait between attempts

    Raises:
        OSError: If directory cannot be removed after all retries
    """
    path = Path(path)
    if not path.exists():
        return

    for attempt in range(max_retries):
        try:
            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=remove_readonly)
            else:
                shutil.rmtree(path, onerror=remove_readonly)
            return
        except OSError as e:
            if attempt < max_retries - 1:
                time.sleep(retry_delay)
            else:
                raise OSError(
                    f"Failed to remove directory {path} after {max_retries} attempts: {e}"
                ) from e


def replace_file(source: Path, destination: Path) -> None:
    """Atomically move source over destination."""
    os.replace(source, destination)
