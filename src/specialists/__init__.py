"""Specialist matching, verification boosting and ranking.

Match score (0..100) measures intrinsic fit. The verification boost is
computed separately and added on top, so verified specialists usually
outrank unverified ones with a somewhat better fit.
"""

from src.specialists.match_scorer import MatchComponents, MatchScorer, match_score
from src.specialists.metrics import RankingMetrics
from src.specialists.models import (
    RecommendationContext,
    RecommendationResult,
    ScoredResult,
    Severity,
    SpecialistCandidate,
    VerificationLevel,
    VerificationStatus,
)
from src.specialists.ranker import (
    SpecialistDirectory,
    SpecialistRanker,
    rank_specialists,
    recommend_specialists,
)
from src.specialists.verification import VerificationBooster, verification_boost


__all__ = [
    "MatchComponents",
    "MatchScorer",
    "RankingMetrics",
    "RecommendationContext",
    "RecommendationResult",
    "ScoredResult",
    "Severity",
    "SpecialistCandidate",
    "SpecialistDirectory",
    "SpecialistRanker",
    "VerificationBooster",
    "VerificationLevel",
    "VerificationStatus",
    "match_score",
    "rank_specialists",
    "recommend_specialists",
    "verification_boost",
]
