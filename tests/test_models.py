"""Tests for core data models."""

from __future__ import annotations

from pathlib import Path

import pytest

from filever.models import (
    ChangeNotification,
    DenialReason,
    Eligibility,
    PurgeStats,
    VersionOutcome,
    VersionResult,
)


class TestChangeNotification:
    """Test ChangeNotification dataclass."""

    def test_is_immutable(self) -> None:
        """Should not allow fields to change after creation."""
        notification = ChangeNotification(path=Path("/data/a.txt"), observed_at=1.0)

        with pytest.raises(AttributeError):
            notification.path = Path("/data/b.txt")  # type: ignore[misc]


class TestEligibility:
    """Test Eligibility results."""

    def test_allowed(self) -> None:
        """Should be truthy without a reason."""
        result = Eligibility.allowed()

        assert result
        assert result.eligible
        assert result.reason is None

    def test_denied(self) -> None:
        """Should be falsy and carry the reason."""
        result = Eligibility.denied(DenialReason.EXCLUDED)

        assert not result
        assert result.reason is DenialReason.EXCLUDED
        assert result.reason.value == "excluded"


class TestVersionResult:
    """Test VersionResult defaults."""

    def test_defaults(self) -> None:
        """Should default to no version path and an empty detail."""
        result = VersionResult(path=Path("/data/a.txt"), outcome=VersionOutcome.BUSY)

        assert result.version_path is None
        assert result.detail == ""

    def test_skipped_label(self) -> None:
        """Should describe a cooldown skip."""
        assert VersionOutcome.SKIPPED.value == "recent version exists"


class TestPurgeStats:
    """Test PurgeStats tracking."""

    def test_increment(self) -> None:
        """Should count removed and failed files separately."""
        stats = PurgeStats()

        stats.increment("removed", Path("/data/.a~~~~001.txt"))
        stats.increment("failed", Path("/data/.b~~~~001.txt"))

        assert stats.removed == 1
        assert stats.failed == 1
        assert stats.removed_files == [Path("/data/.a~~~~001.txt")]
