"""Topic matching between user interests and content topics.

Two strategies share one result shape: a semantic strategy backed by a
text generation service and a deterministic keyword strategy with a
medical synonym table. The TopicMatcher facade falls back from the
former to the latter on any failure.
"""

from src.topics.errors import TopicMatchError
from src.topics.keyword_matcher import KeywordTopicMatcher, topics_overlap
from src.topics.matcher import TopicMatcher, match_topics
from src.topics.metrics import TopicMatchMetrics
from src.topics.models import TopicMatchResult, TopicPair, TopicRelationship
from src.topics.semantic_matcher import SemanticTopicMatcher


__all__ = [
    "KeywordTopicMatcher",
    "SemanticTopicMatcher",
    "TopicMatchError",
    "TopicMatchMetrics",
    "TopicMatchResult",
    "TopicMatcher",
    "TopicPair",
    "TopicRelationship",
    "match_topics",
    "topics_overlap",
]
