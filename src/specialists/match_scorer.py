"""Intrinsic fit scoring of a specialist for a recommendation context."""

import re
from dataclasses import dataclass

from src.config.schemas.scoring import MatchWeights
from src.data_model import round_half_up
from src.specialists.models import RecommendationContext, SpecialistCandidate


_IMMEDIATE_MARKERS = ("immediate", "instant", "real-time", "realtime")
_DURATION_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s*(minutes?|mins?|m\b|hours?|hrs?|h\b|days?|d\b)", re.IGNORECASE
)
_UNIT_MINUTES = {"m": 1.0, "h": 60.0, "d": 1440.0}


def response_minutes(bucket: str) -> float | None:
    """Parse a response-time label into its upper bound in minutes.

    Args:
        bucket: Label such as "< 15 mins", "< 1 hour" or "immediate".

    Returns:
        Upper bound in minutes, or None if the label is not understood.
    """
    text = bucket.strip().lower()
    if not text:
        return None
    if any(marker in text for marker in _IMMEDIATE_MARKERS):
        return 0.0
    matches = _DURATION_PATTERN.findall(text)
    if not matches:
        return None
    # "15-30 mins" is bounded by its last number
    value, unit = matches[-1]
    return float(value) * _UNIT_MINUTES[unit[0].lower()]


@dataclass(frozen=True)
class MatchComponents:
    """Match score split into its components.

    Attributes:
        specialty: Specialty match points.
        experience: Experience points.
        rating: Rating points.
        language: Common-language points.
        remote: Remote consultation points.
        urgency: Fast-response points for urgent cases.
    """

    specialty: float = 0.0
    experience: float = 0.0
    rating: float = 0.0
    language: float = 0.0
    remote: float = 0.0
    urgency: float = 0.0

    def raw_total(self) -> float:
        """Sum of all components before capping."""
        return (
            self.specialty
            + self.experience
            + self.rating
            + self.language
            + self.remote
            + self.urgency
        )


class MatchScorer:
    """Computes a 0..100 match score independent of verification."""

    def __init__(self, weights: MatchWeights | None = None) -> None:
        """Initialize the scorer.

        Args:
            weights: Scoring weights. Defaults are used if None.
        """
        self._weights = weights or MatchWeights()

    def components(
        self, specialist: SpecialistCandidate, context: RecommendationContext
    ) -> MatchComponents:
        """Compute each component of the match score.

        Args:
            specialist: Candidate to score.
            context: Recommendation context.

        Returns:
            Uncapped components.
        """
        return MatchComponents(
            specialty=self._specialty_points(specialist, context),
            experience=self._experience_points(specialist),
            rating=self._rating_points(specialist),
            language=self._language_points(specialist),
            remote=self._remote_points(specialist),
            urgency=self._urgency_points(specialist, context),
        )

    def score(self, specialist: SpecialistCandidate, context: RecommendationContext) -> int:
        """Compute the match score.

        Args:
            specialist: Candidate to score.
            context: Recommendation context.

        Returns:
            Integer score in [0, max_score].
        """
        total = self.components(specialist, context).raw_total()
        return round_half_up(min(max(total, 0.0), self._weights.max_score))

    def is_generic_context(self, context: RecommendationContext) -> bool:
        """Whether the context carries the generic fallback specialty."""
        return (
            context.recommended_specialty.strip().lower()
            == self._weights.generic_specialty.strip().lower()
        )

    def _specialty_points(
        self, specialist: SpecialistCandidate, context: RecommendationContext
    ) -> float:
        wanted = context.recommended_specialty.strip().lower()
        specialty = specialist.specialty.strip().lower()

        if self.is_generic_context(context) and self._weights.generic_marker in specialty:
            return self._weights.generic_specialty_points

        for offered in (specialty, (specialist.sub_specialty or "").strip().lower()):
            if offered and wanted and (wanted in offered or offered in wanted):
                return self._weights.specialty_points
        return 0.0

    def _experience_points(self, specialist: SpecialistCandidate) -> float:
        w = self._weights
        scaled = specialist.experience_years / w.experience_saturation_years * w.experience_points
        return min(scaled, w.experience_points)

    def _rating_points(self, specialist: SpecialistCandidate) -> float:
        w = self._weights
        return min(specialist.rating, w.max_rating) / w.max_rating * w.rating_points

    def _language_points(self, specialist: SpecialistCandidate) -> float:
        if specialist.languages & self._weights.common_languages:
            return self._weights.language_points
        return 0.0

    def _remote_points(self, specialist: SpecialistCandidate) -> float:
        if specialist.consultation_types & self._weights.remote_consultation_types:
            return self._weights.remote_points
        return 0.0

    def _urgency_points(
        self, specialist: SpecialistCandidate, context: RecommendationContext
    ) -> float:
        if not context.severity.is_urgent:
            return 0.0
        minutes = response_minutes(specialist.response_time_bucket)
        if minutes is not None and minutes <= self._weights.urgent_response_minutes:
            return self._weights.urgency_points
        return 0.0


def match_score(
    specialist: SpecialistCandidate,
    context: RecommendationContext,
    weights: MatchWeights | None = None,
) -> int:
    """Pure function API for the specialist match score."""
    return MatchScorer(weights).score(specialist, context)
