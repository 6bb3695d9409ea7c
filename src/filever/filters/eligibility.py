"""Pre-filters deciding whether a changed file may be versioned."""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Iterable

from filever.filters.exclusions import ExclusionEngine
from filever.models import DenialReason, Eligibility
from filever.state.poller import VersioningState
from filever.utils.files import is_temporary_name


class EligibilityFilter:
    """Side-effect free predicate over a path.

    Reads the shared enabled flag and the exclusion rules; never touches the
    filesystem.
    """

    def __init__(
        self,
        state: VersioningState,
        exclusions: ExclusionEngine,
        extensions: Iterable[str],
        *,
        root: Path | None = None,
    ) -> None:
        self.state = state
        self.exclusions = exclusions
        self.extensions = frozenset(ext.lower() for ext in extensions)
        self.root = root

    def check(self, path: Path | str) -> Eligibility:
        path = PurePath(path)
        if not self.state.enabled:
            return Eligibility.denied(DenialReason.DISABLED)
        if is_temporary_name(path.name):
            return Eligibility.denied(DenialReason.TEMPORARY)
        if self._in_hidden_directory(path):
            return Eligibility.denied(DenialReason.HIDDEN_DIRECTORY)
        if path.suffix.lower() not in self.extensions:
            return Eligibility.denied(DenialReason.EXTENSION)
        if self.exclusions.is_excluded(path):
            return Eligibility.denied(DenialReason.EXCLUDED)
        return Eligibility.allowed()

    def _in_hidden_directory(self, path: PurePath) -> bool:
        parent = path.parent
        if self.root is not None:
            try:
                parent = parent.relative_to(self.root)
            except ValueError:
                pass
        return any(part.startswith(".") and part not in (".", "..") for part in parent.parts)
