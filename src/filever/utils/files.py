"""Utility helpers for working with files."""

from __future__ import annotations

import fcntl
import os
import re
import threading
from pathlib import Path
from typing import Iterable, Iterator

VERSION_MARKER = "~~~~"
HIDDEN_PREFIX = "."
LOCK_FILE_PREFIXES = ("~$", ".~")

_VERSION_SUFFIX = re.compile(r"~~~~\d{3}(?=\.[^.]+$)")


class CopyAborted(Exception):
    """Raised when an in-progress copy is cancelled."""


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """Absolute, normalized form used as the per-path key."""
    return Path(os.path.normpath(os.path.abspath(os.fspath(path))))


def is_temporary_name(name: str) -> bool:
    """True for editor lock files and files this tool produced itself."""
    if name.startswith(LOCK_FILE_PREFIXES):
        return True
    if VERSION_MARKER in name:
        return True
    return _VERSION_SUFFIX.search(name) is not None


def is_version_name(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIX) and VERSION_MARKER in name


def versioned_path(source: Path, index: int) -> Path:
    """Build `<dir>/.<stem>~~~~<NNN><ext>` for a source file."""
    return source.parent / f"{HIDDEN_PREFIX}{source.stem}{VERSION_MARKER}{index:03d}{source.suffix}"


def next_version_path(source: Path) -> Path:
    """First versioned name, probing from 001, that does not exist yet."""
    index = 1
    while True:
        candidate = versioned_path(source, index)
        if not candidate.exists():
            return candidate
        index += 1


def iter_version_files(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield versioned files under the input paths, skipping trash folders."""
    for item in inputs:
        if item.is_dir():
            yield from iter_version_files(
                sorted(
                    child
                    for child in item.rglob(f"{HIDDEN_PREFIX}*{VERSION_MARKER}*")
                    if child.is_file()
                )
            )
        elif item.is_file() and is_version_name(item.name):
            as_text = str(item)
            if ".trashinfo" in as_text or ".Trash" in as_text:
                continue
            yield item


def try_exclusive_open(path: Path) -> bool:
    """Check whether nobody else holds a lock on the file.

    FileNotFoundError propagates; a missing source is not a lock.
    """
    try:
        with path.open("rb") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    except FileNotFoundError:
        raise
    except (BlockingIOError, PermissionError):
        return False
    return True


def copy_exclusive(
    source: Path,
    destination: Path,
    *,
    chunk_size: int = 1 << 20,
    cancel: threading.Event | None = None,
) -> int:
    """Copy `source` to a new file at `destination`, holding an exclusive lock.

    The destination must not exist. `cancel` is checked between chunks.
    Returns the number of bytes copied.
    """
    copied = 0
    with source.open("rb") as src:
        try:
            fcntl.flock(src.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            raise OSError(f"source became locked: {source}") from exc
        with destination.open("xb") as dst:
            for chunk in iter(lambda: src.read(chunk_size), b""):
                if cancel is not None and cancel.is_set():
                    raise CopyAborted(f"copy cancelled: {source}")
                dst.write(chunk)
                copied += len(chunk)
    return copied
