"""
Per-build state.

A BuildSession is reset at the start of every top-level build. It holds the
synthetic-to-real directory table the virtual module bridge reads, the set of
asset reference ids this plugin emitted, and a memo of manifests already
built during the session.
"""

import os
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set, TypeVar

from .build_lock import LockTicket

SYNTHETIC_DIR_PREFIX = ".__cargowasm__"
GLUE_ENTRY = "index.js"

T = TypeVar("T")


def synthetic_dir_name(module_name: str) -> str:
    """Hidden directory name standing in for a crate's glue output."""
    return f"{SYNTHETIC_DIR_PREFIX}{module_name}"


def glue_import_path(module_name: str) -> str:
    """Relative specifier the loader uses to import the glue module."""
    return f"./{synthetic_dir_name(module_name)}/{GLUE_ENTRY}"


@dataclass
class DirMapping:
    """One synthetic directory and the real directory behind it."""

    source: str
    target: str

    def matches(self, module_id: str) -> bool:
        if module_id == self.source:
            return True
        return module_id.startswith(self.source) and module_id[len(self.source)] in ("/", os.sep)

    def translate(self, module_id: str) -> str:
        return self.target + module_id[len(self.source):]


class FakeDirMapping:
    """Ordered, append-only table of synthetic directory mappings.

    Lookups scan from the most recently added mapping, so re-registering a
    synthetic directory replaces the earlier target.
    """

    def __init__(self):
        self._mappings: List[DirMapping] = []
        self._lock = threading.Lock()

    def add(self, source: str, target: str) -> None:
        with self._lock:
            self._mappings.append(DirMapping(source=source, target=target))

    def lookup(self, module_id: str) -> Optional[str]:
        """Translate a synthetic id to a real path, or None if it is not ours."""
        with self._lock:
            for mapping in reversed(self._mappings):
                if mapping.matches(module_id):
                    return mapping.translate(module_id)
        return None

    def clear(self) -> None:
        with self._lock:
            self._mappings.clear()

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[DirMapping]:
        with self._lock:
            return iter(list(self._mappings))


class EmittedAssetRegistry:
    """Reference ids of assets emitted by this plugin."""

    def __init__(self):
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, reference_id: str) -> None:
        with self._lock:
            self._ids.add(reference_id)

    def __contains__(self, reference_id: object) -> bool:
        with self._lock:
            return reference_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()


@dataclass
class BuildSession:
    """State owned by one plugin instance for one build pass."""

    fake_dirs: FakeDirMapping = field(default_factory=FakeDirMapping)
    assets: EmittedAssetRegistry = field(default_factory=EmittedAssetRegistry)
    lock_ticket: Optional[LockTicket] = None
    _builds: Dict[str, Future] = field(default_factory=dict, repr=False)
    _builds_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def reset(self) -> None:
        """Forget everything from the previous build pass."""
        self.fake_dirs.clear()
        self.assets.clear()
        self.lock_ticket = None
        with self._builds_lock:
            self._builds.clear()

    def memoize(self, key: str, build: Callable[[], T]) -> T:
        """
        Run `build` once per key for this session.

        Concurrent callers with the same key wait for the first caller and
        receive its result, or its exception.
        """
        with self._builds_lock:
            future = self._builds.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._builds[key] = future

        if not owner:
            return future.result()

        try:
            result = build()
        except BaseException as e:
            future.set_exception(e)
            raise
        future.set_result(result)
        return result
