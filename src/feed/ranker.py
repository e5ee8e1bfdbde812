"""Personalized feed ranking."""

import time
from collections.abc import Sequence
from datetime import datetime

import structlog

from src.config.constants import COMPONENT_FEED
from src.config.schemas.scoring import ScoringConfig
from src.data_model import round_half_up, utc_now
from src.feed.metrics import FeedMetrics
from src.feed.models import ContentItem, FeedEntry, FeedResult
from src.feed.relevance import RelevanceScorer, find_matching_topics, unique_topics
from src.store.models import UserInterest
from src.topics.matcher import TopicMatcher


logger = structlog.get_logger()

PERSONALIZATION_HIGH = "high"
PERSONALIZATION_BASELINE = "baseline"


class FeedRanker:
    """Scores, annotates and orders content for one user.

    Ordering is by relevance score only, descending and stable: items
    with equal scores keep the order in which they were retrieved.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        now: datetime | None = None,
        topic_matcher: TopicMatcher | None = None,
        metrics: FeedMetrics | None = None,
    ) -> None:
        """Initialize the ranker.

        Args:
            config: Scoring configuration. Defaults are used if None.
            now: Reference time. Defaults to now.
            topic_matcher: Optional matcher used to annotate entries.
            metrics: Optional metrics instance.
        """
        self._config = config or ScoringConfig()
        self._now = now or utc_now()
        self._scorer = RelevanceScorer(self._config.relevance, self._now)
        self._topic_matcher = topic_matcher
        self._metrics = metrics or FeedMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_FEED, subcomponent="ranker")

    def rank_feed(
        self,
        contents: Sequence[ContentItem],
        user_topics: Sequence[str],
        user_interests: Sequence[UserInterest] = (),
        limit: int | None = None,
    ) -> FeedResult:
        """Build a personalized feed.

        Args:
            contents: Candidate content in retrieval order.
            user_topics: The user's topics.
            user_interests: The user's interest records.
            limit: Maximum entries. Defaults to the configured feed limit.

        Returns:
            FeedResult ordered by relevance.

        Raises:
            ValueError: If ``limit`` is not a positive integer.
        """
        limit = self._config.ranking.feed_limit if limit is None else limit
        if limit < 1:
            msg = f"limit must be a positive integer, got {limit!r}"
            raise ValueError(msg)

        topics = unique_topics(user_topics)
        start = time.perf_counter()
        entries = [self._build_entry(content, topics, user_interests) for content in contents]
        self._metrics.record_scoring_duration((time.perf_counter() - start) * 1000)

        entries.sort(key=lambda e: e.relevance_score, reverse=True)
        entries = entries[:limit]

        if self._topic_matcher is not None and topics and entries:
            entries = self._annotate_topic_match(self._topic_matcher, entries, contents, topics)

        baseline = not topics
        self._metrics.record_feed(scored=len(contents), returned=len(entries), baseline=baseline)
        self._log.info(
            "feed_ranked",
            candidates=len(contents),
            returned=len(entries),
            user_topics=len(topics),
            personalization=PERSONALIZATION_BASELINE if baseline else PERSONALIZATION_HIGH,
        )
        return FeedResult(
            feed=entries,
            personalization_level=PERSONALIZATION_BASELINE if baseline else PERSONALIZATION_HIGH,
            user_topics_count=len(topics),
            generated_at=self._now,
        )

    def _build_entry(
        self,
        content: ContentItem,
        topics: list[str],
        user_interests: Sequence[UserInterest],
    ) -> FeedEntry:
        matching = find_matching_topics(content, topics)
        matched_user_topics = {m.user_topic for m in matching}
        percentage = round_half_up(len(matched_user_topics) / max(1, len(topics)) * 100)
        return FeedEntry(
            content_id=content.id,
            title=content.title,
            relevance_score=self._scorer.score(content, topics, user_interests),
            matching_topics=matching,
            match_percentage=percentage,
            is_verified=content.is_verified_author,
            is_new=self._scorer.is_new(content),
            published_at=content.published_at,
            topics=list(content.topics),
        )

    @staticmethod
    def _annotate_topic_match(
        matcher: TopicMatcher,
        entries: list[FeedEntry],
        contents: Sequence[ContentItem],
        topics: list[str],
    ) -> list[FeedEntry]:
        by_id = {content.id: content for content in contents}
        content_topic_sets = {e.content_id: list(by_id[e.content_id].topics) for e in entries}
        results = matcher.match_topics(topics, content_topic_sets)
        scores = {r.id: r.score for r in results}
        return [
            entry.model_copy(update={"topic_match_score": scores.get(entry.content_id)})
            for entry in entries
        ]


def rank_feed(
    contents: Sequence[ContentItem],
    user_topics: Sequence[str],
    user_interests: Sequence[UserInterest] = (),
    limit: int | None = None,
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> FeedResult:
    """Pure function API for feed ranking.

    Args:
        contents: Candidate content in retrieval order.
        user_topics: The user's topics.
        user_interests: The user's interest records.
        limit: Maximum entries.
        config: Scoring configuration.
        now: Reference time.

    Returns:
        FeedResult ordered by relevance.
    """
    ranker = FeedRanker(config=config, now=now, metrics=FeedMetrics())
    return ranker.rank_feed(contents, user_topics, user_interests, limit)
