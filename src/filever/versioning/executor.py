"""Create one version file for a changed source file."""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from pathlib import Path

from filever.models import VersionOutcome, VersionResult
from filever.utils.files import (
    CopyAborted,
    copy_exclusive,
    next_version_path,
    normalize_path,
    try_exclusive_open,
)
from filever.versioning.cooldown import CooldownLedger
from filever.versioning.metadata import MetadataReplicator, PosixMetadata, replicate_metadata

LOGGER = logging.getLogger(__name__)


class VersioningExecutor:
    """Runs the versioning steps for a single admitted path.

    Steps: cooldown check, wait for the source to be unlocked, derive the
    next free version name, copy under a timeout, replicate permissions and
    ownership, then record the success in the cooldown ledger. Any failure
    ends the attempt; nothing is retried until the next notification.
    """

    def __init__(
        self,
        ledger: CooldownLedger,
        metadata: MetadataReplicator | None = None,
        *,
        lock_timeout: float = 3.0,
        lock_poll_interval: float = 0.5,
        copy_timeout: float = 20 * 60.0,
        chunk_size: int = 1 << 20,
    ) -> None:
        self.ledger = ledger
        self.metadata = metadata if metadata is not None else PosixMetadata()
        self.lock_timeout = lock_timeout
        self.lock_poll_interval = lock_poll_interval
        self.copy_timeout = copy_timeout
        self.chunk_size = chunk_size

    async def run(self, path: Path | str) -> VersionResult:
        source = normalize_path(path)
        try:
            return await self._version(source)
        except asyncio.CancelledError:
            LOGGER.info("Versioning cancelled for: %s", source)
            raise
        except Exception as exc:
            LOGGER.exception("Error while versioning %s", source)
            return VersionResult(source, VersionOutcome.FAILED, detail=str(exc))

    async def _version(self, source: Path) -> VersionResult:
        if self.ledger.is_cooling(source):
            LOGGER.info("Skipping versioning for %s as a version was created recently", source)
            return VersionResult(source, VersionOutcome.SKIPPED)

        try:
            unlocked = await self.wait_for_unlock(source)
        except FileNotFoundError:
            LOGGER.warning("File disappeared before it could be versioned: %s", source)
            return VersionResult(source, VersionOutcome.FAILED, detail="source missing")
        if not unlocked:
            LOGGER.warning(
                "File still locked after %.1fs, not versioning: %s", self.lock_timeout, source
            )
            return VersionResult(source, VersionOutcome.BUSY)

        destination = next_version_path(source)
        try:
            await self._copy(source, destination)
        except asyncio.TimeoutError:
            _discard(destination)
            LOGGER.error("Timeout occurred while copying: %s", source)
            return VersionResult(source, VersionOutcome.FAILED, detail="copy timed out")
        except asyncio.CancelledError:
            _discard(destination)
            raise
        except FileExistsError:
            LOGGER.error("Version name taken while copying %s: %s", source, destination)
            return VersionResult(source, VersionOutcome.FAILED, detail="destination exists")
        except OSError as exc:
            _discard(destination)
            LOGGER.error("Failed to create versioned file for %s: %s", source, exc)
            return VersionResult(source, VersionOutcome.FAILED, detail=str(exc))

        try:
            await asyncio.to_thread(replicate_metadata, source, destination, self.metadata)
        except Exception as exc:
            LOGGER.warning("Could not copy permissions/ownership to %s: %s", destination, exc)

        self.ledger.record(source)
        LOGGER.info("Versioned file created: %s", destination)
        return VersionResult(source, VersionOutcome.VERSIONED, version_path=destination)

    async def wait_for_unlock(self, source: Path) -> bool:
        """Poll until the source can be locked exclusively or the wait times out."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.lock_timeout
        while True:
            if try_exclusive_open(source):
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self.lock_poll_interval)

    async def _copy(self, source: Path, destination: Path) -> int:
        loop = asyncio.get_running_loop()
        cancel = threading.Event()
        future = loop.run_in_executor(
            None,
            functools.partial(
                copy_exclusive, source, destination, chunk_size=self.chunk_size, cancel=cancel
            ),
        )
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=self.copy_timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError):
            cancel.set()
            try:
                await future
            except (CopyAborted, OSError) as exc:
                LOGGER.debug("Aborted copy of %s: %s", source, exc)
            raise


def _discard(destination: Path) -> None:
    """Remove a partially written version file."""
    try:
        destination.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.error("Could not remove partial version file %s: %s", destination, exc)
