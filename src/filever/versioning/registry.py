"""In-flight versioning operations, at most one per path."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Protocol

from filever.utils.files import normalize_path

LOGGER = logging.getLogger(__name__)


class Handle(Protocol):
    def done(self) -> bool: ...


class TaskRegistry:
    """Map of normalized path to the handle of its running operation.

    The entry itself is the per-path lock: admission fails while it exists.
    """

    def __init__(self) -> None:
        self._entries: Dict[Path, Any] = {}
        self._lock = threading.Lock()

    def try_admit(self, path: Path | str, spawn: Callable[[], Handle] | None = None) -> bool:
        """Insert an entry for `path` unless one exists.

        `spawn` is called under the lock to create the handle; it must not
        block.
        """
        key = normalize_path(path)
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = spawn() if spawn is not None else None
            return True

    def complete(self, path: Path | str, handle: Handle | None = None) -> bool:
        """Remove the entry for `path`.

        With `handle`, the entry is removed only if it still belongs to that
        handle, so a late callback cannot evict a newer admission.
        """
        key = normalize_path(path)
        with self._lock:
            if key not in self._entries:
                return False
            if handle is not None and self._entries[key] is not handle:
                return False
            del self._entries[key]
            return True

    def sweep(self) -> int:
        """Drop entries whose operation finished without calling complete."""
        with self._lock:
            finished = [
                key
                for key, handle in self._entries.items()
                if handle is not None and handle.done()
            ]
            for key in finished:
                del self._entries[key]
        if finished:
            LOGGER.debug("Swept %d finished task(s)", len(finished))
        return len(finished)

    def handles(self) -> list[Any]:
        with self._lock:
            return [handle for handle in self._entries.values() if handle is not None]

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._lock:
            return normalize_path(path) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
