"""Personalized content feed: relevance scoring and ranking."""

from src.feed.metrics import FeedMetrics
from src.feed.models import (
    ContentItem,
    Engagement,
    FeedEntry,
    FeedResult,
    MatchingTopic,
    RelevanceBreakdown,
)
from src.feed.ranker import FeedRanker, rank_feed
from src.feed.relevance import RelevanceScorer, find_matching_topics, score_relevance


__all__ = [
    "ContentItem",
    "Engagement",
    "FeedEntry",
    "FeedMetrics",
    "FeedRanker",
    "FeedResult",
    "MatchingTopic",
    "RelevanceBreakdown",
    "RelevanceScorer",
    "find_matching_topics",
    "rank_feed",
    "score_relevance",
]
