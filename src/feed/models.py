"""Data models for the personalized content feed."""

from datetime import datetime
from typing import Annotated, Any

from pydantic import Field, field_validator

from src.data_model import StrictBaseModel, WireModel, ensure_utc


class Engagement(StrictBaseModel):
    """Engagement counters of a content item."""

    views: Annotated[int, Field(ge=0)] = 0
    likes: Annotated[int, Field(ge=0)] = 0
    shares: Annotated[int, Field(ge=0)] = 0
    comments: Annotated[int, Field(ge=0)] = 0


class ContentItem(StrictBaseModel):
    """Feed candidate authored by a specialist.

    Owned by the content-authoring side; scoring only reads it.

    Attributes:
        id: Content identifier.
        topics: Topic strings attached to the content.
        published_at: Publication timestamp.
        engagement: Engagement counters.
        is_verified_author: Whether the author is a verified specialist.
        title: Display title.
        author_name: Display name of the author.
        specialty: Author's specialty.
    """

    id: Annotated[str, Field(min_length=1)]
    topics: tuple[str, ...] = ()
    published_at: datetime
    engagement: Engagement = Field(default_factory=Engagement)
    is_verified_author: bool = False
    title: str = ""
    author_name: str | None = None
    specialty: str | None = None

    @field_validator("topics", mode="before")
    @classmethod
    def dedupe_topics(cls, v: Any) -> tuple[str, ...]:
        """Drop blank and case-insensitively duplicate topics, keeping order."""
        seen: set[str] = set()
        topics: list[str] = []
        for topic in v or ():
            text = str(topic).strip()
            key = text.lower()
            if text and key not in seen:
                seen.add(key)
                topics.append(text)
        return tuple(topics)

    @field_validator("published_at", mode="after")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        """Store timestamps as aware UTC datetimes."""
        return ensure_utc(v)


class MatchingTopic(WireModel):
    """A (content topic, user topic) pair that matched by substring."""

    content_topic: str
    user_topic: str
    exact_match: bool


class RelevanceBreakdown(StrictBaseModel):
    """Relevance score split into its bands (before rounding).

    Attributes:
        topic_score: Topic overlap band.
        recency_score: Recency band.
        engagement_score: Engagement band.
        author_score: Verified-author bonus.
        interest_score: Interest-weighted bonus.
        baseline_score: Baseline given to users without topics.
        total: Clamped, rounded relevance score.
    """

    topic_score: float = 0.0
    recency_score: float = 0.0
    engagement_score: float = 0.0
    author_score: float = 0.0
    interest_score: float = 0.0
    baseline_score: float = 0.0
    total: int = 0


class FeedEntry(WireModel):
    """Scored feed item as returned to the client.

    Attributes:
        content_id: Content identifier.
        title: Display title.
        relevance_score: Relevance score 0..100.
        matching_topics: Substring-matched topic pairs.
        match_percentage: Share of user topics that matched, 0..100.
        is_verified: Whether the author is a verified specialist.
        is_new: Whether the item was published recently.
        published_at: Publication timestamp.
        topics: Content topics.
        topic_match_score: Topic matcher score, when a matcher was used.
    """

    content_id: str
    title: str = ""
    relevance_score: int
    matching_topics: list[MatchingTopic] = Field(default_factory=list)
    match_percentage: int = 0
    is_verified: bool = False
    is_new: bool = False
    published_at: datetime
    topics: list[str] = Field(default_factory=list)
    topic_match_score: float | None = None


class FeedResult(WireModel):
    """Personalized feed response payload.

    Attributes:
        feed: Entries ordered by relevance.
        personalization_level: "high" with user topics, "baseline" without.
        user_topics_count: Number of user topics used.
        generated_at: When the feed was computed.
    """

    feed: list[FeedEntry] = Field(default_factory=list)
    personalization_level: str
    user_topics_count: int = 0
    generated_at: datetime
