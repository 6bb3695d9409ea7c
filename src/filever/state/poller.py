"""Enabled/disabled kill switch refreshed from an indicator file."""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)

ENABLED = "enabled"
DISABLED = "disabled"


class VersioningState:
    """Process-wide enabled flag with a single writer.

    Starts unknown, which reads as disabled. Readers never take a lock; the
    value is a single reference swap.
    """

    def __init__(self, enabled: bool | None = None) -> None:
        self._value = enabled

    @property
    def enabled(self) -> bool:
        return self._value is True

    def set(self, enabled: bool) -> bool:
        """Store the new value and report whether it changed."""
        previous, self._value = self._value, bool(enabled)
        return previous != self._value

    def __repr__(self) -> str:
        label = "unknown" if self._value is None else (ENABLED if self._value else DISABLED)
        return f"VersioningState({label})"


def read_indicator(path: Path) -> bool:
    """Parse the indicator file; anything but `enabled` means disabled.

    Raises OSError when the file is missing or unreadable.
    """
    return Path(path).read_text(encoding="utf-8").strip().lower() == ENABLED


def write_indicator(path: Path, enabled: bool) -> None:
    Path(path).write_text((ENABLED if enabled else DISABLED) + "\n", encoding="utf-8")


class StatePoller:
    """Refresh a VersioningState from the indicator file on an interval."""

    def __init__(self, state: VersioningState, indicator: Path, *, interval: float = 60.0) -> None:
        self.state = state
        self.indicator = Path(indicator)
        self.interval = interval
        self._last_problem: str | None = None

    def poll(self) -> bool:
        problem: str | None = None
        try:
            enabled = read_indicator(self.indicator)
        except FileNotFoundError:
            enabled = False
            problem = (
                f"Status file is missing, so versioning is disabled. Create {self.indicator} "
                "containing either 'enabled' or 'disabled'"
            )
        except (OSError, UnicodeDecodeError) as exc:
            enabled = False
            problem = f"Error reading status file {self.indicator}, so versioning is disabled: {exc}"

        changed = self.state.set(enabled)
        if problem is not None and problem != self._last_problem:
            LOGGER.warning(problem)
        elif changed:
            LOGGER.info("File versioning is now %s", ENABLED if enabled else DISABLED)
        self._last_problem = problem
        return enabled
