"""Verification-aware specialist ranking pipeline."""

import time
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

import structlog

from src.config.constants import COMPONENT_SPECIALISTS
from src.config.schemas.scoring import ScoringConfig
from src.data_model import utc_now
from src.specialists.match_scorer import MatchScorer
from src.specialists.metrics import RankingMetrics
from src.specialists.models import (
    RecommendationContext,
    RecommendationResult,
    ScoredResult,
    Severity,
    SpecialistCandidate,
)
from src.specialists.verification import VerificationBooster


logger = structlog.get_logger()


@runtime_checkable
class SpecialistDirectory(Protocol):
    """Read access to the specialist registry."""

    def find_specialists(
        self, specialty: str, limit: int, *, online_first: bool = False
    ) -> list[SpecialistCandidate]:
        """Return active specialists whose specialty matches ``specialty``."""
        ...

    def find_general_specialists(
        self,
        limit: int,
        patterns: Sequence[str] | None = None,
        *,
        online_first: bool = False,
    ) -> list[SpecialistCandidate]:
        """Return active specialists from the general-physician pool."""
        ...


def _validate_limit(limit: int) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        msg = f"limit must be a positive integer, got {limit!r}"
        raise ValueError(msg)


class SpecialistRanker:
    """Scores, orders and truncates specialist candidates.

    total_score = match_score + verification_boost. Sorting is stable and
    descending, so candidates with equal totals keep their input order.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        now: datetime | None = None,
        metrics: RankingMetrics | None = None,
    ) -> None:
        """Initialize the ranker.

        Args:
            config: Scoring configuration. Defaults are used if None.
            now: Reference time for verification recency. Defaults to now.
            metrics: Optional metrics instance.
        """
        self._config = config or ScoringConfig()
        self._now = now or utc_now()
        self._match_scorer = MatchScorer(self._config.match)
        self._booster = VerificationBooster(self._config.verification, self._now)
        self._metrics = metrics or RankingMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_SPECIALISTS, subcomponent="ranker")

    def score_all(
        self, candidates: Sequence[SpecialistCandidate], context: RecommendationContext
    ) -> list[ScoredResult]:
        """Score candidates in input order, ranks assigned by input position."""
        scored: list[ScoredResult] = []
        for position, candidate in enumerate(candidates, start=1):
            match = self._match_scorer.score(candidate, context)
            boost = self._booster.boost(candidate)
            scored.append(
                ScoredResult(
                    candidate_id=candidate.id,
                    match_score=match,
                    verification_boost=boost,
                    total_score=match + boost,
                    rank=position,
                    is_verified=candidate.is_verified,
                    verification_level=candidate.verification_level,
                    specialty=candidate.specialty,
                    name=candidate.name,
                )
            )
        return scored

    def rank(
        self,
        candidates: Sequence[SpecialistCandidate],
        context: RecommendationContext,
        limit: int,
    ) -> list[ScoredResult]:
        """Rank candidates by total score.

        Args:
            candidates: Candidates to rank (typically over-fetched).
            context: Recommendation context.
            limit: Maximum results to return.

        Returns:
            At most ``limit`` results with ranks 1..N.

        Raises:
            ValueError: If ``limit`` is not a positive integer.
        """
        _validate_limit(limit)

        start = time.perf_counter()
        scored = self.score_all(candidates, context)
        self._metrics.record_scoring_duration((time.perf_counter() - start) * 1000)
        self._metrics.record_scores([s.total_score for s in scored])

        ordered = sorted(scored, key=lambda s: s.total_score, reverse=True)[:limit]
        return [
            result.model_copy(update={"rank": position})
            for position, result in enumerate(ordered, start=1)
        ]

    def recommend(
        self,
        context: RecommendationContext,
        directory: SpecialistDirectory,
        limit: int | None = None,
    ) -> RecommendationResult:
        """Fetch, rank and explain specialist recommendations.

        The directory is asked for ``overfetch_factor x limit`` candidates
        of the recommended specialty. An empty answer widens the query to
        the general-physician pool; if that is empty too the result is
        empty with ``no_match`` set. The generic default specialty goes
        straight to the general-physician pool. Critical contexts fetch
        online specialists first.

        Args:
            context: Recommendation context.
            directory: Specialist registry.
            limit: Maximum results. Defaults to the configured limit.

        Returns:
            RecommendationResult.

        Raises:
            ValueError: If ``limit`` is not a positive integer.
        """
        ranking = self._config.ranking
        limit = ranking.default_limit if limit is None else limit
        _validate_limit(limit)
        fetch_limit = limit * ranking.overfetch_factor
        online_first = context.severity == Severity.CRITICAL
        generic = self._match_scorer.is_generic_context(context)

        fallback_used = False
        if generic:
            candidates = directory.find_general_specialists(
                fetch_limit, ranking.general_pool_patterns, online_first=online_first
            )
        else:
            candidates = directory.find_specialists(
                context.recommended_specialty, fetch_limit, online_first=online_first
            )
        if not candidates and not generic:
            fallback_used = True
            self._log.info(
                "specialty_pool_empty",
                specialty=context.recommended_specialty,
                fallback_patterns=ranking.general_pool_patterns,
            )
            candidates = directory.find_general_specialists(
                fetch_limit, ranking.general_pool_patterns, online_first=online_first
            )

        if not candidates:
            self._metrics.record_recommendation(
                no_match=True, fallback_used=fallback_used, verification_impact=False
            )
            self._log.info("no_specialist_match", specialty=context.recommended_specialty)
            return RecommendationResult(
                results=[],
                no_match=True,
                verification_impact=False,
                fallback_used=fallback_used,
                context=context,
            )

        results = self.rank(candidates, context, limit)
        impact = self._verification_changed_order(candidates, context, results, limit)
        self._metrics.record_recommendation(
            no_match=False, fallback_used=fallback_used, verification_impact=impact
        )
        self._log.info(
            "specialists_ranked",
            specialty=context.recommended_specialty,
            severity=context.severity.value,
            candidates=len(candidates),
            returned=len(results),
            fallback_used=fallback_used,
            verification_impact=impact,
        )
        return RecommendationResult(
            results=results,
            no_match=False,
            verification_impact=impact,
            fallback_used=fallback_used,
            context=context,
        )

    def _verification_changed_order(
        self,
        candidates: Sequence[SpecialistCandidate],
        context: RecommendationContext,
        results: list[ScoredResult],
        limit: int,
    ) -> bool:
        by_match = sorted(
            self.score_all(candidates, context), key=lambda s: s.match_score, reverse=True
        )[:limit]
        return [s.candidate_id for s in by_match] != [s.candidate_id for s in results]


def rank_specialists(
    candidates: Sequence[SpecialistCandidate],
    context: RecommendationContext,
    limit: int,
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> list[ScoredResult]:
    """Pure function API for specialist ranking.

    Args:
        candidates: Candidates to rank.
        context: Recommendation context.
        limit: Maximum results to return.
        config: Scoring configuration.
        now: Reference time for verification recency.

    Returns:
        Ranked results.
    """
    return SpecialistRanker(config=config, now=now, metrics=RankingMetrics()).rank(
        candidates, context, limit
    )


def recommend_specialists(
    context: RecommendationContext,
    directory: SpecialistDirectory,
    limit: int | None = None,
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> RecommendationResult:
    """Pure function API for a full recommendation request."""
    return SpecialistRanker(config=config, now=now).recommend(context, directory, limit)
