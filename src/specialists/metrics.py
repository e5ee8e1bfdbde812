"""Metrics collection for specialist ranking."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class RankingMetrics:
    """Metrics for specialist ranking operations.

    Attributes:
        recommendations_total: Recommendation requests served.
        candidates_scored: Candidates scored across all requests.
        no_match_total: Requests that found no candidates at all.
        general_fallback_total: Requests served from the general pool.
        verification_impact_total: Requests whose order verification changed.
        total_score_values: Total scores, for percentile calculation.
        scoring_duration_ms: Time spent scoring in the last request.
    """

    recommendations_total: int = 0
    candidates_scored: int = 0
    no_match_total: int = 0
    general_fallback_total: int = 0
    verification_impact_total: int = 0
    total_score_values: list[int] = field(default_factory=list)
    scoring_duration_ms: float = 0.0

    _instance: ClassVar["RankingMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RankingMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_recommendation(
        self, *, no_match: bool, fallback_used: bool, verification_impact: bool
    ) -> None:
        """Record the outcome of one recommendation request."""
        self.recommendations_total += 1
        self.no_match_total += int(no_match)
        self.general_fallback_total += int(fallback_used)
        self.verification_impact_total += int(verification_impact)

    def record_scores(self, scores: list[int]) -> None:
        """Record total scores of scored candidates.

        Args:
            scores: Total scores.
        """
        self.candidates_scored += len(scores)
        self.total_score_values.extend(scores)

    def record_scoring_duration(self, duration_ms: float) -> None:
        """Record scoring duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.scoring_duration_ms = duration_ms

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate total score percentiles (p50/p90).

        Returns:
            Dictionary with p50 and p90 values.
        """
        if not self.total_score_values:
            return {"p50": 0.0, "p90": 0.0}

        sorted_scores = sorted(self.total_score_values)
        n = len(sorted_scores)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return float(sorted_scores[min(idx, n - 1)])

        return {"p50": percentile(50), "p90": percentile(90)}

    def to_dict(self) -> dict[str, object]:
        """Export metrics as dictionary."""
        return {
            "recommendations_total": self.recommendations_total,
            "candidates_scored": self.candidates_scored,
            "no_match_total": self.no_match_total,
            "general_fallback_total": self.general_fallback_total,
            "verification_impact_total": self.verification_impact_total,
            "scoring_duration_ms": self.scoring_duration_ms,
            "score_percentiles": self.get_score_percentiles(),
        }
