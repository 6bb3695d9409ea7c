"""Path exclusion rules loaded from a line-oriented file."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

LOGGER = logging.getLogger(__name__)


class ExclusionRuleError(ValueError):
    """A rule in the exclusions file is not a valid pattern."""


class ExclusionEngine:
    """Immutable set of compiled exclusion patterns."""

    def __init__(self, patterns: Sequence[re.Pattern[str]] = ()) -> None:
        self._patterns = tuple(patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    @classmethod
    def from_lines(cls, lines: Iterable[str], *, source: str = "<rules>") -> "ExclusionEngine":
        compiled: list[re.Pattern[str]] = []
        for lineno, raw in enumerate(lines, start=1):
            rule = raw.strip()
            if not rule:
                continue
            try:
                compiled.append(re.compile(rule, re.IGNORECASE))
            except re.error as exc:
                raise ExclusionRuleError(
                    f"{source}:{lineno}: invalid exclusion pattern {rule!r}: {exc}"
                ) from exc
        return cls(compiled)

    @classmethod
    def load(cls, path: Path) -> "ExclusionEngine":
        """Load rules from `path`, creating an empty file if it is missing."""
        path = Path(path)
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
            LOGGER.info("Created empty exclusions file: %s", path)
            return cls()

        engine = cls.from_lines(path.read_text(encoding="utf-8").splitlines(), source=str(path))
        LOGGER.info("Loaded %d exclusion rule(s) from %s", len(engine), path)
        return engine

    def is_excluded(self, path: Path | str) -> bool:
        text = str(path)
        return any(pattern.search(text) for pattern in self._patterns)
