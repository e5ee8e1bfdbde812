"""Relevance scoring of feed content for a user.

Bands (defaults): topic overlap up to 40, recency up to 30, engagement
up to 20, verified author 10. An interest-weighted bonus of up to 20 is
added on top and the total is clamped to 100.
"""

from collections.abc import Sequence
from datetime import datetime

from src.config.schemas.scoring import RelevanceWeights
from src.data_model import days_between, round_half_up, utc_now
from src.feed.models import ContentItem, MatchingTopic, RelevanceBreakdown
from src.store.models import UserInterest
from src.topics.keyword_matcher import normalize_term, topics_overlap


def unique_topics(topics: Sequence[str]) -> list[str]:
    """Normalize topics and drop blanks and duplicates, keeping order."""
    seen: set[str] = set()
    unique: list[str] = []
    for topic in topics:
        normalized = normalize_term(topic)
        if normalized and normalized not in seen:
            seen.add(normalized)
            unique.append(normalized)
    return unique


def find_matching_topics(content: ContentItem, user_topics: Sequence[str]) -> list[MatchingTopic]:
    """Find (content topic, user topic) pairs that match by substring.

    Args:
        content: Content item.
        user_topics: The user's topics.

    Returns:
        Distinct matching pairs, in content-topic order.
    """
    users = unique_topics(user_topics)
    matches: list[MatchingTopic] = []
    for content_topic in content.topics:
        for user_topic in users:
            if topics_overlap(content_topic, user_topic):
                matches.append(
                    MatchingTopic(
                        content_topic=content_topic,
                        user_topic=user_topic,
                        exact_match=normalize_term(content_topic) == user_topic,
                    )
                )
    return matches


class RelevanceScorer:
    """Computes 0..100 relevance scores for feed content."""

    def __init__(
        self, weights: RelevanceWeights | None = None, now: datetime | None = None
    ) -> None:
        """Initialize the scorer.

        Args:
            weights: Band configuration. Defaults are used if None.
            now: Reference time for recency. Defaults to now.
        """
        self._weights = weights or RelevanceWeights()
        self._now = now or utc_now()

    @property
    def now(self) -> datetime:
        """Reference time used for recency."""
        return self._now

    def breakdown(
        self,
        content: ContentItem,
        user_topics: Sequence[str],
        user_interests: Sequence[UserInterest] = (),
    ) -> RelevanceBreakdown:
        """Compute every band of the relevance score.

        Args:
            content: Content item to score.
            user_topics: The user's topics.
            user_interests: The user's interest records.

        Returns:
            Breakdown with the clamped, rounded total.
        """
        w = self._weights
        recency = self._recency_score(content)
        engagement = self._engagement_score(content)

        if not unique_topics(user_topics):
            raw = w.baseline_score + recency + engagement
            return RelevanceBreakdown(
                recency_score=recency,
                engagement_score=engagement,
                baseline_score=w.baseline_score,
                total=self._finalize(raw),
            )

        topic = min(
            len(find_matching_topics(content, user_topics)) * w.points_per_topic_match,
            w.topic_overlap_cap,
        )
        author = w.verified_author_bonus if content.is_verified_author else 0.0
        interest = self._interest_score(content, user_interests)

        raw = topic + recency + engagement + author + interest
        return RelevanceBreakdown(
            topic_score=topic,
            recency_score=recency,
            engagement_score=engagement,
            author_score=author,
            interest_score=interest,
            total=self._finalize(raw),
        )

    def score(
        self,
        content: ContentItem,
        user_topics: Sequence[str],
        user_interests: Sequence[UserInterest] = (),
    ) -> int:
        """Compute the relevance score.

        Args:
            content: Content item to score.
            user_topics: The user's topics.
            user_interests: The user's interest records.

        Returns:
            Integer score in [0, max_score].
        """
        return self.breakdown(content, user_topics, user_interests).total

    def is_new(self, content: ContentItem) -> bool:
        """Whether content was published within the new-content window."""
        return days_between(content.published_at, self._now) < self._weights.new_content_days

    def _recency_score(self, content: ContentItem) -> float:
        w = self._weights
        days = days_between(content.published_at, self._now)
        return max(0.0, w.recency_cap - days * w.recency_decay_per_day)

    def _engagement_score(self, content: ContentItem) -> float:
        w = self._weights
        shares = min(content.engagement.shares * w.share_weight, w.share_cap)
        likes = min(content.engagement.likes * w.like_weight, w.like_cap)
        return shares + likes

    def _interest_score(
        self, content: ContentItem, user_interests: Sequence[UserInterest]
    ) -> float:
        w = self._weights
        total = 0.0
        for interest in user_interests:
            if any(topics_overlap(interest.topic, topic) for topic in content.topics):
                total += min(
                    interest.relevance_score / w.interest_score_divisor,
                    w.interest_bonus_per_topic_cap,
                )
        return min(total, w.interest_bonus_cap)

    def _finalize(self, raw: float) -> int:
        return round_half_up(min(max(raw, 0.0), self._weights.max_score))


def score_relevance(
    content: ContentItem,
    user_topics: Sequence[str],
    user_interests: Sequence[UserInterest] = (),
    weights: RelevanceWeights | None = None,
    now: datetime | None = None,
) -> int:
    """Pure function API for the relevance score."""
    return RelevanceScorer(weights, now).score(content, user_topics, user_interests)
