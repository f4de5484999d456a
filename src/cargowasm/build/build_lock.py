"""Process-wide build lock.

cargo and wasm-bindgen share state in the target directory, even between
unrelated crates of the same bundle, so the whole compile-through-optimize
span runs under a single lock for the process. There is no timeout.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_build_lock = threading.Lock()


@dataclass
class LockTicket:
    """Proof of holding the build lock."""

    label: str
    acquired_at: float


class BuildLock:
    """Scoped access to the process-wide build lock."""

    def __init__(self, lock: Optional[threading.Lock] = None):
        """
        Args:
            lock: Lock to guard (defaults to the process-wide lock)
        """
        self._lock = lock if lock is not None else _build_lock

    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self, label: str = "") -> Iterator[LockTicket]:
        """Block until the lock is free, then hold it for the with-block.

        The lock is released on every exit path, including exceptions.
        """
        if self._lock.locked():
            logger.debug(f"Waiting for build lock ({label})")

        self._lock.acquire()
        try:
            ticket = LockTicket(label=label, acquired_at=time.time())
            logger.debug(f"Acquired build lock ({label})")
            yield ticket
        finally:
            self._lock.release()
            logger.debug(f"Released build lock ({label})")
