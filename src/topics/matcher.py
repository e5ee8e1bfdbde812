"""Topic matcher facade with semantic-first, keyword-fallback selection."""

from collections.abc import Mapping, Sequence

import structlog

from src.config.constants import COMPONENT_TOPICS
from src.config.schemas.scoring import TopicMatchConfig, TopicMatchStrategy
from src.llm.protocols import TextGenerationClient
from src.topics.keyword_matcher import KeywordTopicMatcher
from src.topics.metrics import TopicMatchMetrics
from src.topics.models import TopicMatchResult
from src.topics.semantic_matcher import SemanticTopicMatcher


logger = structlog.get_logger()


class TopicMatcher:
    """Match user topics to content topics.

    The semantic strategy runs when configured and a client is
    available. Any failure it raises is logged and answered with the
    keyword result, which has the same shape.
    """

    def __init__(
        self,
        config: TopicMatchConfig | None = None,
        client: TextGenerationClient | None = None,
    ) -> None:
        """Initialize the matcher.

        Args:
            config: Topic matching settings. Defaults are used if None.
            client: Text generation client for the semantic strategy.
        """
        self._config = config or TopicMatchConfig()
        self._keyword = KeywordTopicMatcher(self._config)
        self._semantic = SemanticTopicMatcher(client, self._config) if client else None
        self._metrics = TopicMatchMetrics.get_instance()
        self._log = logger.bind(component=COMPONENT_TOPICS, subcomponent="matcher")

    @property
    def strategy(self) -> TopicMatchStrategy:
        """Strategy that will be attempted first."""
        if self._config.strategy == TopicMatchStrategy.SEMANTIC and self._semantic:
            return TopicMatchStrategy.SEMANTIC
        return TopicMatchStrategy.KEYWORD

    def match_topics(
        self, user_topics: Sequence[str], content_topic_sets: Mapping[str, Sequence[str]]
    ) -> list[TopicMatchResult]:
        """Match every content item against the user's topics.

        Args:
            user_topics: The user's interest topics.
            content_topic_sets: Content ID to that content's topics.

        Returns:
            One result per content ID, in input order.
        """
        if self.strategy == TopicMatchStrategy.SEMANTIC and self._semantic is not None:
            self._metrics.record_semantic_call()
            try:
                results = self._semantic.match(user_topics, content_topic_sets)
            except Exception as exc:  # noqa: BLE001
                self._metrics.record_fallback(type(exc).__name__)
                self._log.warning(
                    "semantic_match_fallback",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    content_count=len(content_topic_sets),
                )
            else:
                self._metrics.record_semantic_success()
                return results

        self._metrics.record_keyword_call()
        return self._keyword.match(user_topics, content_topic_sets)


def match_topics(
    user_topics: Sequence[str],
    content_topic_sets: Mapping[str, Sequence[str]],
    config: TopicMatchConfig | None = None,
    client: TextGenerationClient | None = None,
) -> list[TopicMatchResult]:
    """Pure function API for topic matching.

    Args:
        user_topics: The user's interest topics.
        content_topic_sets: Content ID to that content's topics.
        config: Topic matching settings.
        client: Text generation client for the semantic strategy.

    Returns:
        One result per content ID, in input order.
    """
    return TopicMatcher(config, client).match_topics(user_topics, content_topic_sets)
