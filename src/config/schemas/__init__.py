"""Configuration schema definitions."""

from src.config.schemas.scoring import (
    MatchWeights,
    RankingConfig,
    RelevanceWeights,
    ScoringConfig,
    TopicMatchConfig,
    TopicMatchStrategy,
    VerificationPolicy,
)


__all__ = [
    "MatchWeights",
    "RankingConfig",
    "RelevanceWeights",
    "ScoringConfig",
    "TopicMatchConfig",
    "TopicMatchStrategy",
    "VerificationPolicy",
]
