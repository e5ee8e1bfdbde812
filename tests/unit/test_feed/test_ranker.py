"""Unit tests for feed ranking."""

from unittest.mock import MagicMock

import pytest

from src.feed.metrics import FeedMetrics
from src.feed.models import ContentItem, Engagement
from src.feed.ranker import FeedRanker, rank_feed
from src.topics.models import TopicMatchResult
from tests.helpers.time import FIXED_NOW, days_ago


def _make_content(
    content_id: str,
    topics: list[str] | None = None,
    published_days_ago: float = 1,
    likes: int = 0,
    verified: bool = False,
) -> ContentItem:
    """Create a test content item."""
    return ContentItem(
        id=content_id,
        title=f"Post {content_id}",
        topics=topics or [],
        published_at=days_ago(published_days_ago),
        engagement=Engagement(likes=likes),
        is_verified_author=verified,
    )


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    FeedMetrics.reset()


class TestRankFeed:
    """Tests for FeedRanker.rank_feed."""

    def test_new_user_gets_baseline_feed(self) -> None:
        """Zero topics: every item is baseline + recency + engagement, sorted."""
        contents = [
            _make_content(f"c{i}", topics=["fitness", "diet"], published_days_ago=i, likes=i)
            for i in range(5)
        ]
        result = rank_feed(contents, user_topics=[], limit=5, now=FIXED_NOW)

        assert len(result.feed) == 5
        assert result.personalization_level == "baseline"
        # 10 + (30 - 1.5 x i) + 0.4 x i
        assert [e.relevance_score for e in result.feed] == [40, 39, 38, 37, 36]
        assert [e.content_id for e in result.feed] == ["c0", "c1", "c2", "c3", "c4"]
        assert all(e.match_percentage == 0 for e in result.feed)

    def test_orders_by_relevance_descending(self) -> None:
        """Matching content ranks above non-matching content."""
        contents = [
            _make_content("other", topics=["skin care"]),
            _make_content("match", topics=["heart health"]),
        ]
        result = rank_feed(contents, ["heart"], now=FIXED_NOW)
        assert [e.content_id for e in result.feed] == ["match", "other"]
        assert result.personalization_level == "high"
        assert result.user_topics_count == 1

    def test_ties_keep_retrieval_order(self) -> None:
        """Equal scores keep the input order."""
        contents = [_make_content(cid, topics=["sleep"]) for cid in ("b", "a", "c")]
        result = rank_feed(contents, ["sleep"], now=FIXED_NOW)
        assert [e.content_id for e in result.feed] == ["b", "a", "c"]

    def test_truncates_to_limit(self) -> None:
        """At most ``limit`` entries are returned."""
        contents = [_make_content(f"c{i}") for i in range(8)]
        assert len(rank_feed(contents, ["x"], limit=3, now=FIXED_NOW).feed) == 3

    def test_invalid_limit_raises(self) -> None:
        """A non-positive limit is malformed input."""
        with pytest.raises(ValueError, match="limit"):
            rank_feed([_make_content("a")], ["x"], limit=0, now=FIXED_NOW)

    def test_match_percentage_counts_user_topics(self) -> None:
        """matchPercentage is the share of user topics that matched."""
        content = _make_content("c", topics=["diabetes", "diabetes diet", "sleep"])
        result = rank_feed([content], ["diabetes", "sleep", "stress"], now=FIXED_NOW)
        assert result.feed[0].match_percentage == 67
        assert len(result.feed[0].matching_topics) == 3

    def test_match_percentage_never_exceeds_100(self) -> None:
        """Several pairs for one user topic still count that topic once."""
        content = _make_content("c", topics=["heart", "heart health", "heart rhythm"])
        result = rank_feed([content], ["heart"], now=FIXED_NOW)
        assert len(result.feed[0].matching_topics) == 3
        assert result.feed[0].match_percentage == 100

    def test_is_new_within_seven_days(self) -> None:
        """Content younger than 7 days is flagged new."""
        contents = [
            _make_content("fresh", published_days_ago=6.9),
            _make_content("old", published_days_ago=7),
        ]
        result = rank_feed(contents, ["x"], now=FIXED_NOW)
        flags = {e.content_id: e.is_new for e in result.feed}
        assert flags == {"fresh": True, "old": False}

    def test_empty_content_returns_empty_feed(self) -> None:
        """No candidates is an empty feed, not an error."""
        result = rank_feed([], ["heart"], now=FIXED_NOW)
        assert result.feed == []

    def test_wire_format(self) -> None:
        """Entries serialize with camelCase keys."""
        result = rank_feed([_make_content("c", topics=["flu"])], ["flu"], now=FIXED_NOW)
        wire = result.to_wire()
        entry = wire["feed"][0]
        assert entry["matchPercentage"] == 100
        assert entry["matchingTopics"][0] == {
            "contentTopic": "flu",
            "userTopic": "flu",
            "exactMatch": True,
        }
        assert wire["personalizationLevel"] == "high"


class TestTopicMatchAnnotation:
    """Tests for optional topic matcher annotations."""

    def test_annotation_does_not_change_order(self) -> None:
        """Topic match scores are attached but ordering stays by relevance."""
        matcher = MagicMock()
        matcher.match_topics.return_value = [
            TopicMatchResult(id="match", score=0.2),
            TopicMatchResult(id="other", score=0.9),
        ]
        contents = [
            _make_content("other", topics=["cardiac care"]),
            _make_content("match", topics=["heart"]),
        ]
        ranker = FeedRanker(now=FIXED_NOW, topic_matcher=matcher)
        result = ranker.rank_feed(contents, ["heart"])

        assert [e.content_id for e in result.feed] == ["match", "other"]
        assert {e.content_id: e.topic_match_score for e in result.feed} == {
            "match": 0.2,
            "other": 0.9,
        }
        user_topics, content_sets = matcher.match_topics.call_args.args
        assert user_topics == ["heart"]
        assert content_sets == {"match": ["heart"], "other": ["cardiac care"]}

    def test_matcher_skipped_without_topics(self) -> None:
        """Baseline feeds do not call the matcher."""
        matcher = MagicMock()
        ranker = FeedRanker(now=FIXED_NOW, topic_matcher=matcher)
        result = ranker.rank_feed([_make_content("a")], [])
        matcher.match_topics.assert_not_called()
        assert result.feed[0].topic_match_score is None

    def test_records_metrics(self) -> None:
        """Feed ranking is counted."""
        metrics = FeedMetrics()
        FeedRanker(now=FIXED_NOW, metrics=metrics).rank_feed(
            [_make_content("a"), _make_content("b")], [], limit=1
        )
        assert metrics.to_dict()["feeds_ranked"] == 1
        assert metrics.baseline_feeds == 1
        assert metrics.items_scored == 2
        assert metrics.items_returned == 1
