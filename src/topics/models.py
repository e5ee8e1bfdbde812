"""Data models for topic matching."""

from enum import Enum
from typing import Annotated

from pydantic import Field

from src.data_model import WireModel


class TopicRelationship(str, Enum):
    """How a user topic relates to a content topic."""

    EXACT = "exact"
    SYNONYM = "synonym"
    RELATED_CONDITION = "related_condition"
    BROADER_TERM = "broader_term"
    NARROWER_TERM = "narrower_term"


class TopicPair(WireModel):
    """One matched (user topic, content topic) pair.

    The relationship describes the content topic relative to the user
    topic: ``narrower_term`` when the content topic is more specific,
    ``broader_term`` when it is more general.
    """

    user_topic: str
    content_topic: str
    relationship: TopicRelationship


class TopicMatchResult(WireModel):
    """Match outcome for one content item.

    Attributes:
        id: Content identifier.
        score: Match confidence in [0, 1].
        pairs: Matched topic pairs.
    """

    id: str
    score: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    pairs: list[TopicPair] = Field(default_factory=list)
