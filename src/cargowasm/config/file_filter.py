"""Include/exclude filtering of module ids."""

import os
import re
from pathlib import Path, PurePath
from typing import Iterable, List, Optional, Pattern


def _to_posix(path: str) -> str:
    return PurePath(path).as_posix() if os.sep != "/" else path


def glob_to_regex(pattern: str) -> Pattern[str]:
    """
    Compile a glob into a regex matched against whole posix paths.

    `*` and `?` stay within one path segment, `**` spans any number of
    segments and `**/` also matches zero directories.
    """
    parts = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts))


class FileFilter:
    """
    Decides whether a module id is handled by the plugin.

    An id passes when it matches no exclude pattern and, if any include
    patterns are given, at least one include pattern. Relative patterns are
    anchored at the working directory unless they begin with `**`.
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        base_dir: Optional[Path] = None
    ):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.include = self._normalize(include or [])
        self.exclude = self._normalize(exclude or [])

    def _normalize(self, patterns: Iterable[str]) -> List[Pattern[str]]:
        normalized = []
        for pattern in patterns:
            if not pattern.startswith("**") and not os.path.isabs(pattern):
                pattern = str(self.base_dir / pattern)
            normalized.append(glob_to_regex(_to_posix(pattern)))
        return normalized

    def __call__(self, module_id: str) -> bool:
        path = _to_posix(module_id)

        if any(pattern.fullmatch(path) for pattern in self.exclude):
            return False

        if not self.include:
            return True

        return any(pattern.fullmatch(path) for pattern in self.include)
