"""Filesystem watch feeding the versioning pipeline.

watchdog delivers events on its observer thread; they are handed to the
event loop with ``call_soon_threadsafe`` and consumed by a single
dispatcher. The dispatcher filters each notification, admits it through the
task registry and spawns one task per admitted path. State polling and the
registry sweep run as periodic background jobs.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from filever.config import AppConfig
from filever.filters.eligibility import EligibilityFilter
from filever.filters.exclusions import ExclusionEngine
from filever.models import ChangeNotification, VersionResult
from filever.state.poller import StatePoller, VersioningState
from filever.utils.files import normalize_path
from filever.versioning.cooldown import CooldownLedger
from filever.versioning.executor import VersioningExecutor
from filever.versioning.metadata import MetadataReplicator
from filever.versioning.registry import TaskRegistry

LOGGER = logging.getLogger(__name__)


class ChangeHandler(FileSystemEventHandler):
    """Turn file modification events into notifications."""

    def __init__(self, submit: Callable[[ChangeNotification], None]) -> None:
        self._submit = submit

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._submit(ChangeNotification(Path(os.fsdecode(event.src_path)), time.time()))


class PeriodicJob:
    """Call `action` every `interval` seconds until stopped."""

    def __init__(self, name: str, interval: float, action: Callable[[], Any]) -> None:
        self.name = name
        self.interval = interval
        self.action = action
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.action()
            except Exception:
                LOGGER.exception("Background job %s failed", self.name)


class VersioningService:
    """Wires the watch, filters, registry and executor together."""

    def __init__(
        self,
        config: AppConfig,
        *,
        state: VersioningState | None = None,
        exclusions: ExclusionEngine | None = None,
        registry: TaskRegistry | None = None,
        ledger: CooldownLedger | None = None,
        executor: VersioningExecutor | None = None,
        metadata: MetadataReplicator | None = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.config = config
        self.root = normalize_path(config.target_dir)
        self.state = state if state is not None else VersioningState()
        self.exclusions = (
            exclusions if exclusions is not None else ExclusionEngine.load(config.exclusions_file)
        )
        self.poller = StatePoller(self.state, config.state_file, interval=config.state_poll_interval)
        self.filter = EligibilityFilter(
            self.state, self.exclusions, config.extensions, root=self.root
        )
        self.registry = registry if registry is not None else TaskRegistry()
        self.ledger = ledger if ledger is not None else CooldownLedger(config.cooldown)
        self.executor = executor or VersioningExecutor(
            self.ledger,
            metadata,
            lock_timeout=config.lock_timeout,
            lock_poll_interval=config.lock_poll_interval,
            copy_timeout=config.copy_timeout,
        )
        self._observer_factory = observer_factory
        self._observer: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[ChangeNotification | None] = asyncio.Queue()
        self._slots: asyncio.Semaphore | None = None
        self._jobs: list[PeriodicJob] = []

    def submit(self, notification: ChangeNotification) -> None:
        """Enqueue a notification; safe to call from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._queue.put_nowait, notification)

    def request_stop(self) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._queue.put_nowait, None)

    def dispatch(self, notification: ChangeNotification) -> asyncio.Task | None:
        """Filter and admit one notification, returning the spawned task."""
        path = normalize_path(notification.path)
        LOGGER.info("Change detected: %s", path)

        reason = self.filter.check(path).reason
        if reason is not None:
            LOGGER.info("Ignoring %s: %s", path, reason.value)
            return None

        spawned: list[asyncio.Task] = []

        def spawn() -> asyncio.Task:
            task = asyncio.create_task(self._process(path), name=f"version:{path}")
            spawned.append(task)
            return task

        if not self.registry.try_admit(path, spawn):
            LOGGER.info("Versioning already in progress, dropping notification: %s", path)
            return None

        task = spawned[0]
        task.add_done_callback(functools.partial(self._on_done, path))
        return task

    async def _process(self, path: Path) -> VersionResult:
        if self._slots is None:
            self._slots = asyncio.Semaphore(self.config.max_workers)
        async with self._slots:
            return await self.executor.run(path)

    def _on_done(self, path: Path, task: asyncio.Task) -> None:
        self.registry.complete(path, task)

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._slots = asyncio.Semaphore(self.config.max_workers)

        self.poller.poll()
        self._jobs = [
            PeriodicJob("state-poll", self.poller.interval, self.poller.poll),
            PeriodicJob("task-sweep", self.config.sweep_interval, self.registry.sweep),
        ]
        for job in self._jobs:
            job.start()

        self._observer = self._observer_factory()
        self._observer.schedule(ChangeHandler(self.submit), str(self.root), recursive=True)
        self._observer.start()
        LOGGER.info("Monitoring started on: %s", self.root)

    async def run(self) -> None:
        """Start, then dispatch notifications until request_stop is called."""
        await self.start()
        try:
            while True:
                notification = await self._queue.get()
                if notification is None:
                    break
                self.dispatch(notification)
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None

        for job in self._jobs:
            await job.stop()
        self._jobs = []

        pending = self.registry.handles()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        LOGGER.info("Monitoring stopped on: %s", self.root)
