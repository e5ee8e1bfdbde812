"""Integration tests for interest tracking and the personalized feed."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.config.schemas.scoring import ScoringConfig, TopicMatchConfig, TopicMatchStrategy
from src.feed import FeedMetrics, FeedRanker
from src.feed.models import ContentItem, Engagement
from src.llm.errors import LlmTimeoutError
from src.store import HealthStore, StoreMetrics, UserInterest
from src.topics import TopicMatcher, TopicMatchMetrics
from tests.helpers.time import FIXED_NOW, days_ago


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    FeedMetrics.reset()
    StoreMetrics.reset()
    TopicMatchMetrics.reset()


@pytest.fixture
def store(tmp_path: Path) -> Generator[HealthStore]:
    """Store with content and one user's interests."""
    with HealthStore(tmp_path / "health.db") as db:
        db.save_content(
            ContentItem(
                id="sleep-guide",
                title="Better sleep",
                topics=["sleep hygiene", "stress"],
                published_at=days_ago(2),
                engagement=Engagement(likes=20, shares=5),
            )
        )
        db.save_content(
            ContentItem(
                id="heart-health",
                title="Cardiovascular wellness",
                topics=["cardiovascular wellness"],
                published_at=days_ago(1),
                is_verified_author=True,
            )
        )
        db.save_content(
            ContentItem(id="skin", title="Skin care", topics=["skin care"], published_at=days_ago(30))
        )
        for _ in range(3):
            db.upsert_interest("u1", "sleep", now=days_ago(1))
        db.upsert_interest("u1", "heart", now=FIXED_NOW)
        yield db


def _feed_inputs(store: HealthStore) -> tuple[list[UserInterest], list[str], list[ContentItem]]:
    interests = store.get_top_interests("u1", limit=10, now=FIXED_NOW)
    return interests, [i.topic for i in interests], store.list_content()


class TestFeedPipeline:
    """End-to-end feed ranking from stored data."""

    def test_feed_orders_by_relevance(self, store: HealthStore) -> None:
        """Topic overlap and engagement outrank verified but unmatched content."""
        interests, topics, contents = _feed_inputs(store)

        result = FeedRanker(now=FIXED_NOW).rank_feed(contents, topics, interests)

        assert result.personalization_level == "high"
        assert result.user_topics_count == 2
        ids = [e.content_id for e in result.feed]
        assert ids[0] == "sleep-guide"
        assert ids[-1] == "skin"
        sleep = result.feed[0]
        assert sleep.match_percentage == 50
        assert [m.user_topic for m in sleep.matching_topics] == ["sleep"]
        assert sleep.is_new is True
        assert all(e.topic_match_score is None for e in result.feed)

    def test_keyword_matcher_finds_synonyms(self, store: HealthStore) -> None:
        """The keyword matcher links heart to cardiovascular content."""
        interests, topics, contents = _feed_inputs(store)
        config = ScoringConfig(topic_matching=TopicMatchConfig(strategy=TopicMatchStrategy.KEYWORD))
        matcher = TopicMatcher(config.topic_matching)

        result = FeedRanker(config, FIXED_NOW, matcher).rank_feed(contents, topics, interests)

        scores = {e.content_id: e.topic_match_score for e in result.feed}
        assert scores["heart-health"] == pytest.approx(0.2)
        assert scores["sleep-guide"] == pytest.approx(0.2)
        assert scores["skin"] == 0.0

    def test_semantic_timeout_falls_back_to_keyword(self, store: HealthStore) -> None:
        """A timing-out semantic matcher yields the keyword annotation."""
        interests, topics, contents = _feed_inputs(store)
        client = MagicMock()
        client.generate_content.side_effect = LlmTimeoutError("timed out")

        semantic = FeedRanker(now=FIXED_NOW, topic_matcher=TopicMatcher(client=client)).rank_feed(
            contents, topics, interests
        )
        keyword = FeedRanker(
            now=FIXED_NOW,
            topic_matcher=TopicMatcher(TopicMatchConfig(strategy=TopicMatchStrategy.KEYWORD)),
        ).rank_feed(contents, topics, interests)

        assert semantic.feed == keyword.feed
        assert TopicMatchMetrics.get_instance().fallbacks_by_reason == {"LlmTimeoutError": 1}

    def test_new_user_gets_baseline_feed(self, store: HealthStore) -> None:
        """A user without interests gets the baseline ordering."""
        interests = store.get_top_interests("newcomer", now=FIXED_NOW)

        result = FeedRanker(now=FIXED_NOW).rank_feed(store.list_content(), [], interests)

        assert result.personalization_level == "baseline"
        assert [e.content_id for e in result.feed] == ["sleep-guide", "heart-health", "skin"]
        assert FeedMetrics.get_instance().baseline_feeds == 1
