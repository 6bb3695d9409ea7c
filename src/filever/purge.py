"""Find, age-filter and remove version files."""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Iterable, List, Sequence

from filever.models import PurgeStats, VersionFile
from filever.utils.files import iter_version_files

LOGGER = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60
TRASH_COMMAND = "trash-put"


def select_version_files(
    directory: Path,
    *,
    days: int = 1,
    include_all: bool = False,
    now: float | None = None,
) -> List[VersionFile]:
    """Collect version files under `directory`.

    With `include_all` every version file is returned. Otherwise ages are
    counted in whole days, rounded down: `days == 0` selects files modified
    within the last 24 hours and `days > 0` selects files whose age exceeds
    `days`, so the default of 1 needs at least two full days.
    """
    if days < 0:
        raise ValueError("days must not be negative")
    current = time.time() if now is None else now
    selected: List[VersionFile] = []
    for path in iter_version_files([directory]):
        try:
            stat = path.stat()
        except FileNotFoundError:
            continue
        whole_days = int((current - stat.st_mtime) // DAY_SECONDS)
        if not include_all:
            if days == 0 and whole_days >= 1:
                continue
            if days > 0 and whole_days <= days:
                continue
        selected.append(VersionFile(path=path, mtime=stat.st_mtime, size=stat.st_size))
    return selected


def find_trash_command() -> str | None:
    return shutil.which(TRASH_COMMAND)


def remove_version_files(
    files: Iterable[VersionFile], *, trash_command: str | None = None
) -> PurgeStats:
    """Send files to the trash when a trash command is given, else unlink them."""
    stats = PurgeStats()
    for item in files:
        stats.found += 1
        try:
            if trash_command:
                subprocess.run([trash_command, str(item.path)], check=True, capture_output=True)
            else:
                item.path.unlink()
        except (OSError, subprocess.CalledProcessError) as exc:
            LOGGER.error("Failed to remove %s: %s", item.path, exc)
            stats.increment("failed", item.path)
            continue
        LOGGER.debug("%s %s", "Trashed" if trash_command else "Deleted", item.path)
        stats.increment("removed", item.path)
    return stats


def describe_selection(days: int, include_all: bool) -> str:
    if include_all:
        return "Here are ALL the version files, regardless of their creation or modification dates:"
    if days == 0:
        return "Here are version files created/modified within the last 24 hours:"
    return f"Here are version files that are more than {days} full day(s) old:"


def total_size(files: Sequence[VersionFile]) -> int:
    return sum(item.size for item in files)
