"""Core filever data models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True, frozen=True)
class ChangeNotification:
    """A file content change reported by the filesystem watch."""

    path: Path
    observed_at: float


class DenialReason(str, enum.Enum):
    DISABLED = "disabled"
    TEMPORARY = "temporary file"
    HIDDEN_DIRECTORY = "hidden directory"
    EXTENSION = "extension not allowed"
    EXCLUDED = "excluded"


@dataclass(slots=True, frozen=True)
class Eligibility:
    """Outcome of the eligibility pre-filters for one path."""

    reason: DenialReason | None = None

    @property
    def eligible(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.eligible

    @classmethod
    def allowed(cls) -> "Eligibility":
        return cls()

    @classmethod
    def denied(cls, reason: DenialReason) -> "Eligibility":
        return cls(reason)


class VersionOutcome(str, enum.Enum):
    VERSIONED = "versioned"
    SKIPPED = "recent version exists"
    BUSY = "busy"
    FAILED = "failed"


@dataclass(slots=True)
class VersionResult:
    """What one versioning attempt did."""

    path: Path
    outcome: VersionOutcome
    version_path: Path | None = None
    detail: str = ""


@dataclass(slots=True)
class VersionFile:
    """A versioned artifact found on disk."""

    path: Path
    mtime: float
    size: int


@dataclass(slots=True)
class PurgeStats:
    found: int = 0
    removed: int = 0
    failed: int = 0
    removed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "removed":
            self.removed += 1
            self.removed_files.append(path)
        else:
            self.failed += 1
