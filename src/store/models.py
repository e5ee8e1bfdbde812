"""Data models for the interest store."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.data_model import ensure_utc, utc_now
from src.store.constants import MAX_CONTEXT_LENGTH, MAX_INTEREST_SCORE, NEW_INTEREST_SCORE


def normalize_topic(topic: str) -> str:
    """Canonical form of a topic: stripped, lowercased, single-spaced.

    Args:
        topic: Free-form topic text.

    Returns:
        Normalized topic.

    Raises:
        ValueError: If the topic is empty after normalization.
    """
    normalized = " ".join(topic.split()).lower()
    if not normalized:
        msg = "Topic must be a non-empty string"
        raise ValueError(msg)
    return normalized


class InterestEventType(str, Enum):
    """Event type for interest upserts.

    - NEW: First mention of the topic for the user
    - UPDATED: Existing topic mentioned again
    """

    NEW = "NEW"
    UPDATED = "UPDATED"


class UserInterest(BaseModel):
    """Accumulated interest of a user in one topic.

    Topics are unique per user after normalization. ``mention_count``
    only grows and records are never deleted; stale interests fade
    through recency weighting instead.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    topic: Annotated[str, Field(min_length=1, description="Normalized topic")]
    relevance_score: float = Field(
        default=NEW_INTEREST_SCORE, description="Interest strength, clamped to [0, 100]"
    )
    last_engaged: datetime = Field(
        default_factory=utc_now, description="Most recent mention"
    )
    mention_count: Annotated[int, Field(ge=1, description="Times mentioned")] = 1
    first_mentioned: datetime | None = Field(
        default=None, description="First mention (None for derived interests)"
    )
    context: str = Field(default="", description="Context of the latest mention")

    @field_validator("topic", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> str:
        """Normalize topic text."""
        if not isinstance(v, str):
            msg = f"Invalid topic: {v!r}"
            raise ValueError(msg)
        return normalize_topic(v)

    @field_validator("relevance_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        """Clamp the score into [0, 100]."""
        return max(0.0, min(MAX_INTEREST_SCORE, float(v)))

    @field_validator("last_engaged", "first_mentioned", mode="after")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        """Store timestamps as aware UTC datetimes."""
        return ensure_utc(v) if v is not None else None

    @field_validator("context", mode="before")
    @classmethod
    def truncate_context(cls, v: Any) -> str:
        """Keep only the first MAX_CONTEXT_LENGTH characters."""
        return str(v or "")[:MAX_CONTEXT_LENGTH]


class InterestUpsertResult(BaseModel):
    """Result of an interest upsert.

    Attributes:
        event_type: Whether the topic was new or updated.
        interest: Stored interest after the upsert.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_type: InterestEventType
    interest: UserInterest
