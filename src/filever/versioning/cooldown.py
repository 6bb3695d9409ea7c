"""Per-path timestamps of the last successful version."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Dict

from filever.utils.files import normalize_path


class CooldownLedger:
    def __init__(self, interval: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = interval
        self._clock = clock
        self._last: Dict[Path, float] = {}
        self._lock = threading.Lock()

    def last_version(self, path: Path | str) -> float | None:
        with self._lock:
            return self._last.get(normalize_path(path))

    def is_cooling(self, path: Path | str) -> bool:
        """True while the previous successful version is younger than the interval."""
        last = self.last_version(path)
        if last is None:
            return False
        return self._clock() - last < self.interval

    def record(self, path: Path | str) -> float:
        now = self._clock()
        with self._lock:
            self._last[normalize_path(path)] = now
        return now

    def __len__(self) -> int:
        with self._lock:
            return len(self._last)
