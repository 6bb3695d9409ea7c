"""Tests for the task registry and the cooldown ledger."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

from filever.versioning.cooldown import CooldownLedger
from filever.versioning.registry import TaskRegistry


def _handle(done: bool = False) -> MagicMock:
    handle = MagicMock()
    handle.done.return_value = done
    return handle


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestTaskRegistry:
    """Test admission, completion and sweeping."""

    def test_admit_once(self) -> None:
        """Should admit a path only while it has no entry."""
        registry = TaskRegistry()

        assert registry.try_admit("/data/report.docx") is True
        assert registry.try_admit("/data/report.docx") is False
        assert len(registry) == 1

    def test_keys_are_normalized(self) -> None:
        """Should treat spellings of the same path as one entry."""
        registry = TaskRegistry()

        assert registry.try_admit("/data/report.docx")
        assert not registry.try_admit("/data/./sub/../report.docx")
        assert Path("/data//report.docx") in registry

    def test_spawn_called_only_on_admission(self) -> None:
        """Should not start work for a rejected notification."""
        registry = TaskRegistry()
        spawn = MagicMock(return_value=_handle())

        registry.try_admit("/data/a.txt", spawn)
        registry.try_admit("/data/a.txt", spawn)

        spawn.assert_called_once()

    def test_complete_allows_readmission(self) -> None:
        """Should admit again after completion."""
        registry = TaskRegistry()
        registry.try_admit("/data/a.txt")

        assert registry.complete("/data/a.txt") is True
        assert registry.complete("/data/a.txt") is False
        assert registry.try_admit("/data/a.txt") is True

    def test_complete_with_stale_handle(self) -> None:
        """Should not evict an entry that belongs to a newer operation."""
        registry = TaskRegistry()
        old, new = _handle(done=True), _handle()
        registry.try_admit("/data/a.txt", lambda: old)
        registry.sweep()
        registry.try_admit("/data/a.txt", lambda: new)

        assert registry.complete("/data/a.txt", old) is False
        assert "/data/a.txt" in registry
        assert registry.complete("/data/a.txt", new) is True

    def test_sweep_removes_finished(self) -> None:
        """Should drop finished entries and keep running ones."""
        registry = TaskRegistry()
        registry.try_admit("/data/done.txt", lambda: _handle(done=True))
        registry.try_admit("/data/running.txt", lambda: _handle(done=False))

        assert registry.sweep() == 1
        assert "/data/done.txt" not in registry
        assert "/data/running.txt" in registry

    def test_concurrent_admission(self) -> None:
        """Should admit exactly one of many simultaneous notifications."""
        registry = TaskRegistry()
        barrier = threading.Barrier(16)
        results: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            admitted = registry.try_admit("/data/report.docx")
            with lock:
                results.append(admitted)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert results.count(False) == 15


class TestCooldownLedger:
    """Test the per-path cooldown."""

    def test_unknown_path_not_cooling(self) -> None:
        """Should allow a path that was never versioned."""
        ledger = CooldownLedger(60)

        assert not ledger.is_cooling("/data/report.docx")
        assert ledger.last_version("/data/report.docx") is None

    def test_cooling_within_interval(self) -> None:
        """Should suppress a second version inside the interval."""
        clock = FakeClock()
        ledger = CooldownLedger(60, clock=clock)
        ledger.record("/data/report.docx")

        clock.now += 30
        assert ledger.is_cooling("/data/report.docx")

        clock.now += 30
        assert not ledger.is_cooling("/data/report.docx")

    def test_per_path(self) -> None:
        """Should track each path independently."""
        ledger = CooldownLedger(60, clock=FakeClock())
        ledger.record("/data/a.txt")

        assert ledger.is_cooling("/data/a.txt")
        assert not ledger.is_cooling("/data/b.txt")
        assert len(ledger) == 1

    def test_zero_interval_never_cools(self) -> None:
        """Should disable the cooldown with a zero interval."""
        ledger = CooldownLedger(0, clock=FakeClock())
        ledger.record("/data/a.txt")

        assert not ledger.is_cooling("/data/a.txt")
