"""Semantic topic matching backed by a text generation service.

The service is asked for pairwise relationship judgments. Its answer is
validated strictly: anything that is not exactly a JSON array of known
pairs raises, and the caller decides how to fall back.
"""

from collections.abc import Mapping, Sequence
from typing import Annotated

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.config.constants import COMPONENT_TOPICS
from src.config.schemas.scoring import TopicMatchConfig
from src.llm.json_utils import parse_strict
from src.llm.prompts import TOPIC_MATCH_SYSTEM_INSTRUCTION, build_topic_match_prompt
from src.llm.protocols import TextGenerationClient
from src.topics.errors import TopicMatchError
from src.topics.keyword_matcher import normalize_term
from src.topics.models import TopicMatchResult, TopicPair, TopicRelationship


logger = structlog.get_logger()


class SemanticJudgment(BaseModel):
    """One pair judgment as returned by the service."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    content_id: str = Field(alias="contentId")
    user_topic: str = Field(alias="userTopic")
    content_topic: str = Field(alias="contentTopic")
    relationship: TopicRelationship
    confidence: Annotated[float, Field(ge=0.0, le=1.0)]
    explanation: str | None = None


_JUDGMENTS_ADAPTER = TypeAdapter(list[SemanticJudgment])


class SemanticTopicMatcher:
    """Matcher that delegates relationship classification to an LLM."""

    def __init__(
        self, client: TextGenerationClient, config: TopicMatchConfig | None = None
    ) -> None:
        """Initialize the matcher.

        Args:
            client: Text generation client.
            config: Topic matching settings. Defaults are used if None.
        """
        self._client = client
        self._config = config or TopicMatchConfig()
        self._log = logger.bind(component=COMPONENT_TOPICS, subcomponent="semantic")

    def match(
        self, user_topics: Sequence[str], content_topic_sets: Mapping[str, Sequence[str]]
    ) -> list[TopicMatchResult]:
        """Match every content item, preserving input order.

        Args:
            user_topics: The user's interest topics.
            content_topic_sets: Content ID to that content's topics.

        Returns:
            One result per content ID.

        Raises:
            LlmApiError: If the service call fails (including timeouts).
            LlmProcessingError: If the response is not valid JSON of the
                expected shape.
            TopicMatchError: If a judgment names an unknown content ID or topic.
        """
        if not user_topics or not any(content_topic_sets.values()):
            return [TopicMatchResult(id=content_id) for content_id in content_topic_sets]

        prompt = build_topic_match_prompt(user_topics, content_topic_sets)
        raw = self._client.generate_content(
            prompt,
            system_instruction=TOPIC_MATCH_SYSTEM_INSTRUCTION,
            timeout=self._config.semantic_timeout_seconds,
        )
        judgments = parse_strict(raw, _JUDGMENTS_ADAPTER)
        self._validate(judgments, user_topics, content_topic_sets)

        accepted: dict[str, list[SemanticJudgment]] = {cid: [] for cid in content_topic_sets}
        dropped = 0
        for judgment in judgments:
            if judgment.confidence < self._config.min_semantic_confidence:
                dropped += 1
                continue
            bucket = accepted[judgment.content_id]
            key = (normalize_term(judgment.user_topic), normalize_term(judgment.content_topic))
            if any(
                (normalize_term(j.user_topic), normalize_term(j.content_topic)) == key
                for j in bucket
            ):
                continue
            bucket.append(judgment)

        self._log.info(
            "semantic_match_complete",
            judgments=len(judgments),
            dropped_low_confidence=dropped,
            content_count=len(content_topic_sets),
        )
        return [self._to_result(cid, accepted[cid]) for cid in content_topic_sets]

    @staticmethod
    def _validate(
        judgments: list[SemanticJudgment],
        user_topics: Sequence[str],
        content_topic_sets: Mapping[str, Sequence[str]],
    ) -> None:
        known_users = {normalize_term(t) for t in user_topics}
        known_content = {
            cid: {normalize_term(t) for t in topics}
            for cid, topics in content_topic_sets.items()
        }
        for judgment in judgments:
            if judgment.content_id not in known_content:
                msg = f"Unknown content id in judgment: {judgment.content_id!r}"
                raise TopicMatchError(msg)
            if normalize_term(judgment.user_topic) not in known_users:
                msg = f"Unknown user topic in judgment: {judgment.user_topic!r}"
                raise TopicMatchError(msg)
            if normalize_term(judgment.content_topic) not in known_content[judgment.content_id]:
                msg = (
                    f"Unknown content topic {judgment.content_topic!r} "
                    f"for content {judgment.content_id!r}"
                )
                raise TopicMatchError(msg)

    @staticmethod
    def _to_result(content_id: str, judgments: list[SemanticJudgment]) -> TopicMatchResult:
        if not judgments:
            return TopicMatchResult(id=content_id)
        score = sum(j.confidence for j in judgments) / len(judgments)
        pairs = [
            TopicPair(
                user_topic=normalize_term(j.user_topic),
                content_topic=normalize_term(j.content_topic),
                relationship=j.relationship,
            )
            for j in judgments
        ]
        return TopicMatchResult(id=content_id, score=round(score, 4), pairs=pairs)
