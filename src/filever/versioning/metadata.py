"""Permission and ownership replication onto version files."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Protocol


class MetadataReplicator(Protocol):
    def get_mode(self, path: Path) -> int: ...

    def set_mode(self, path: Path, mode: int) -> None: ...

    def get_owner(self, path: Path) -> int: ...

    def get_group(self, path: Path) -> int: ...

    def set_owner(self, path: Path, uid: int, gid: int) -> None: ...


class PosixMetadata:
    """Direct OS calls; paths are never passed through a shell."""

    def get_mode(self, path: Path) -> int:
        return stat.S_IMODE(os.stat(path).st_mode)

    def set_mode(self, path: Path, mode: int) -> None:
        os.chmod(path, mode)

    def get_owner(self, path: Path) -> int:
        return os.stat(path).st_uid

    def get_group(self, path: Path) -> int:
        return os.stat(path).st_gid

    def set_owner(self, path: Path, uid: int, gid: int) -> None:
        os.chown(path, uid, gid)


def replicate_metadata(source: Path, destination: Path, metadata: MetadataReplicator) -> None:
    """Copy permission bits, then owner and group, from source to destination."""
    mode = metadata.get_mode(source)
    metadata.set_mode(destination, mode)
    uid = metadata.get_owner(source)
    gid = metadata.get_group(source)
    metadata.set_owner(destination, uid, gid)
