"""Metrics collection for feed ranking."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass
class FeedMetrics:
    """Metrics for feed ranking operations.

    Attributes:
        feeds_ranked: Feeds computed.
        baseline_feeds: Feeds computed for users without topics.
        items_scored: Content items scored.
        items_returned: Entries returned after truncation.
        scoring_duration_ms: Time spent scoring in the last feed.
    """

    feeds_ranked: int = 0
    baseline_feeds: int = 0
    items_scored: int = 0
    items_returned: int = 0
    scoring_duration_ms: float = 0.0

    _instance: ClassVar["FeedMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FeedMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_feed(self, *, scored: int, returned: int, baseline: bool) -> None:
        """Record one ranked feed."""
        self.feeds_ranked += 1
        self.baseline_feeds += int(baseline)
        self.items_scored += scored
        self.items_returned += returned

    def record_scoring_duration(self, duration_ms: float) -> None:
        """Record scoring duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.scoring_duration_ms = duration_ms

    def to_dict(self) -> dict[str, float | int]:
        """Export metrics as dictionary."""
        return {
            "feeds_ranked": self.feeds_ranked,
            "baseline_feeds": self.baseline_feeds,
            "items_scored": self.items_scored,
            "items_returned": self.items_returned,
            "scoring_duration_ms": self.scoring_duration_ms,
        }
