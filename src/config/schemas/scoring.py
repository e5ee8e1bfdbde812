"""Scoring configuration schema.

One table holds every tunable constant of the relevance scorer, the
specialist match scorer, the verification booster, the ranking pipeline
and the topic matcher. Defaults are the production values.
"""

from enum import Enum
from typing import Annotated

from pydantic import Field, field_validator, model_validator

from src.data_model import StrictBaseModel


class TopicMatchStrategy(str, Enum):
    """Strategy used by the topic matcher."""

    SEMANTIC = "semantic"
    KEYWORD = "keyword"


class RelevanceWeights(StrictBaseModel):
    """Relevance scorer bands for the content feed.

    The four base bands (topic overlap, recency, engagement, verified
    author) must sum to ``max_score``; the interest bonus is added on top
    and the total is clamped to ``max_score``.

    Attributes:
        points_per_topic_match: Points per matching (content, user) topic pair.
        topic_overlap_cap: Cap for the topic overlap band.
        recency_cap: Points for content published today.
        recency_decay_per_day: Points lost per day since publication.
        share_weight: Points per share.
        share_cap: Cap for the share component.
        like_weight: Points per like.
        like_cap: Cap for the like component.
        verified_author_bonus: Flat bonus for verified-specialist authors.
        interest_score_divisor: Divisor applied to an interest's relevance score.
        interest_bonus_per_topic_cap: Cap for a single interest's bonus.
        interest_bonus_cap: Cap for the summed interest bonus.
        baseline_score: Flat score given when the user has no topics.
        max_score: Upper clamp for the final score.
        new_content_days: Content younger than this is flagged as new.
    """

    points_per_topic_match: Annotated[float, Field(ge=0.0)] = 10.0
    topic_overlap_cap: Annotated[float, Field(ge=0.0)] = 40.0
    recency_cap: Annotated[float, Field(ge=0.0)] = 30.0
    recency_decay_per_day: Annotated[float, Field(ge=0.0)] = 1.5
    share_weight: Annotated[float, Field(ge=0.0)] = 0.2
    share_cap: Annotated[float, Field(ge=0.0)] = 10.0
    like_weight: Annotated[float, Field(ge=0.0)] = 0.4
    like_cap: Annotated[float, Field(ge=0.0)] = 10.0
    verified_author_bonus: Annotated[float, Field(ge=0.0)] = 10.0
    interest_score_divisor: Annotated[float, Field(gt=0.0)] = 10.0
    interest_bonus_per_topic_cap: Annotated[float, Field(ge=0.0)] = 5.0
    interest_bonus_cap: Annotated[float, Field(ge=0.0)] = 20.0
    baseline_score: Annotated[float, Field(ge=0.0)] = 10.0
    max_score: Annotated[float, Field(gt=0.0)] = 100.0
    new_content_days: Annotated[int, Field(ge=0)] = 7

    @model_validator(mode="after")
    def validate_bands_sum_to_max(self) -> "RelevanceWeights":
        """Ensure the base bands add up to the maximum score."""
        total = (
            self.topic_overlap_cap
            + self.recency_cap
            + self.share_cap
            + self.like_cap
            + self.verified_author_bonus
        )
        if abs(total - self.max_score) > 1e-9:
            msg = (
                f"Relevance bands sum to {total:g}, expected {self.max_score:g} "
                "(topic_overlap_cap + recency_cap + share_cap + like_cap "
                "+ verified_author_bonus)"
            )
            raise ValueError(msg)
        return self


class MatchWeights(StrictBaseModel):
    """Specialist match scorer weights.

    Attributes:
        specialty_points: Points for a specialty or sub-specialty match.
        generic_specialty_points: Points when a generic context meets a
            generalist specialist.
        generic_specialty: Default specialty produced by fallback analysis.
        generic_marker: Substring identifying generalist specialties.
        experience_points: Points at experience saturation.
        experience_saturation_years: Years of experience earning full points.
        rating_points: Points for a perfect rating.
        max_rating: Rating scale maximum.
        language_points: Points for supporting a common language.
        common_languages: Languages counted as commonly requested.
        remote_points: Points for video or chat consultations.
        remote_consultation_types: Consultation types counted as remote.
        urgency_points: Points for fast responders on urgent cases.
        urgent_response_minutes: Maximum response time for the urgency points.
        max_score: Upper clamp for the match score.
    """

    specialty_points: Annotated[float, Field(ge=0.0)] = 40.0
    generic_specialty_points: Annotated[float, Field(ge=0.0)] = 35.0
    generic_specialty: Annotated[str, Field(min_length=1)] = "General Physician"
    generic_marker: Annotated[str, Field(min_length=1)] = "general"
    experience_points: Annotated[float, Field(ge=0.0)] = 25.0
    experience_saturation_years: Annotated[float, Field(gt=0.0)] = 20.0
    rating_points: Annotated[float, Field(ge=0.0)] = 20.0
    max_rating: Annotated[float, Field(gt=0.0)] = 5.0
    language_points: Annotated[float, Field(ge=0.0)] = 5.0
    common_languages: frozenset[str] = frozenset(
        {"english", "hindi", "spanish", "french", "arabic", "mandarin"}
    )
    remote_points: Annotated[float, Field(ge=0.0)] = 5.0
    remote_consultation_types: frozenset[str] = frozenset({"video", "chat"})
    urgency_points: Annotated[float, Field(ge=0.0)] = 5.0
    urgent_response_minutes: Annotated[float, Field(gt=0.0)] = 30.0
    max_score: Annotated[float, Field(gt=0.0)] = 100.0

    @field_validator("common_languages", "remote_consultation_types", mode="after")
    @classmethod
    def lowercase_members(cls, value: frozenset[str]) -> frozenset[str]:
        """Normalize set members to lowercase."""
        return frozenset(v.strip().lower() for v in value if v.strip())


class VerificationPolicy(StrictBaseModel):
    """Verification boost policy table.

    Attributes:
        verified_base: Base boost for verified specialists.
        expert_level: Level boost for expert verification.
        advanced_level: Level boost for advanced verification.
        basic_level: Level boost for basic or unspecified verification.
        recent_bonus: Extra boost for recently verified specialists.
        recent_window_days: Window for the recent bonus.
        pending_boost: Boost for pending verification.
        unverified_penalty: Boost (negative) for unverified specialists.
    """

    verified_base: int = 50
    expert_level: int = 30
    advanced_level: int = 20
    basic_level: int = 10
    recent_bonus: int = 15
    recent_window_days: Annotated[int, Field(ge=0)] = 30
    pending_boost: int = 5
    unverified_penalty: int = -20

    @model_validator(mode="after")
    def validate_level_order(self) -> "VerificationPolicy":
        """Ensure higher verification levels never earn less."""
        if not self.basic_level <= self.advanced_level <= self.expert_level:
            msg = "Verification level boosts must satisfy basic <= advanced <= expert"
            raise ValueError(msg)
        return self


class RankingConfig(StrictBaseModel):
    """Ranking pipeline settings.

    Attributes:
        default_limit: Result count when the caller gives none.
        overfetch_factor: Candidate multiplier fetched before re-ranking.
        general_pool_patterns: Specialty substrings of the fallback pool.
        feed_limit: Default feed length.
    """

    default_limit: Annotated[int, Field(ge=1)] = 5
    overfetch_factor: Annotated[int, Field(ge=1)] = 3
    general_pool_patterns: list[str] = Field(
        default_factory=lambda: ["general", "physician", "family"]
    )
    feed_limit: Annotated[int, Field(ge=1)] = 20


class TopicMatchConfig(StrictBaseModel):
    """Topic matcher settings.

    Attributes:
        strategy: Primary strategy.
        min_semantic_confidence: Semantic pairs below this are discarded.
        keyword_increment: Score added per keyword or synonym pair.
        keyword_score_cap: Ceiling for keyword scores.
        semantic_timeout_seconds: Timeout for the semantic service call.
        synonyms: Extra synonym entries merged over the built-in table.
    """

    strategy: TopicMatchStrategy = TopicMatchStrategy.SEMANTIC
    min_semantic_confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.4
    keyword_increment: Annotated[float, Field(gt=0.0, le=1.0)] = 0.2
    keyword_score_cap: Annotated[float, Field(gt=0.0, lt=1.0)] = 0.8
    semantic_timeout_seconds: Annotated[float, Field(gt=0.0)] = 10.0
    synonyms: dict[str, list[str]] = Field(default_factory=dict)


class ScoringConfig(StrictBaseModel):
    """Root configuration for scoring.yaml.

    Attributes:
        version: Schema version.
        relevance: Relevance scorer bands.
        match: Specialist match weights.
        verification: Verification boost policy.
        ranking: Ranking pipeline settings.
        topic_matching: Topic matcher settings.
    """

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    relevance: RelevanceWeights = Field(default_factory=RelevanceWeights)
    match: MatchWeights = Field(default_factory=MatchWeights)
    verification: VerificationPolicy = Field(default_factory=VerificationPolicy)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    topic_matching: TopicMatchConfig = Field(default_factory=TopicMatchConfig)
