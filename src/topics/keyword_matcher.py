"""Deterministic keyword topic matching.

Pairs are classified in a fixed order: equality, containment in either
direction, then the medical synonym table. Every accepted pair adds a
fixed increment to the content score up to a cap below 1.0, so keyword
results never claim full confidence.
"""

import re
from collections.abc import Iterable, Mapping, Sequence

from src.config.schemas.scoring import TopicMatchConfig
from src.topics.models import TopicMatchResult, TopicPair, TopicRelationship
from src.topics.synonyms import MEDICAL_SYNONYMS


def normalize_term(term: str) -> str:
    """Lowercase a topic and collapse internal whitespace."""
    return " ".join(term.split()).lower()


def topics_overlap(first: str, second: str) -> bool:
    """Check whether two topics match by case-insensitive containment.

    Args:
        first: A topic.
        second: Another topic.

    Returns:
        True if either normalized topic contains the other.
    """
    a = normalize_term(first)
    b = normalize_term(second)
    if not a or not b:
        return False
    return a in b or b in a


def _unique_terms(terms: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for term in terms:
        normalized = normalize_term(term)
        if normalized and normalized not in seen:
            seen.add(normalized)
            ordered.append(normalized)
    return ordered


class SynonymIndex:
    """Symmetric lookup over synonym groups.

    Terms are matched on word boundaries so that "heart" does not fire
    inside "heartburn".
    """

    def __init__(self, table: Mapping[str, Sequence[str]]) -> None:
        """Build the index.

        Args:
            table: Mapping of a head term to its synonyms.
        """
        related: dict[str, set[str]] = {}
        for head, synonyms in table.items():
            group = {normalize_term(t) for t in (head, *synonyms)}
            group.discard("")
            for term in group:
                related.setdefault(term, set()).update(group - {term})

        self._related = related
        self._patterns = {
            term: re.compile(rf"\b{re.escape(term)}\b") for term in related
        }

    def terms_in(self, text: str) -> set[str]:
        """Return indexed terms that occur in the text."""
        return {term for term, pattern in self._patterns.items() if pattern.search(text)}

    def are_synonyms(self, first: str, second: str) -> bool:
        """Check whether two normalized topics share a synonym group.

        Args:
            first: Normalized topic.
            second: Normalized topic.

        Returns:
            True if a term in one topic is a listed synonym of a term
            in the other.
        """
        first_terms = self.terms_in(first)
        if not first_terms:
            return False
        second_terms = self.terms_in(second)
        return any(self._related[term] & second_terms for term in first_terms)


class KeywordTopicMatcher:
    """Rule-based matcher used directly or as the semantic fallback."""

    def __init__(self, config: TopicMatchConfig | None = None) -> None:
        """Initialize the matcher.

        Args:
            config: Topic matching settings. Defaults are used if None.
        """
        self._config = config or TopicMatchConfig()
        table: dict[str, Sequence[str]] = dict(MEDICAL_SYNONYMS)
        table.update(self._config.synonyms)
        self._synonyms = SynonymIndex(table)

    def classify(self, user_topic: str, content_topic: str) -> TopicRelationship | None:
        """Classify the relationship between two topics.

        Args:
            user_topic: Topic from the user's interests.
            content_topic: Topic attached to a content item.

        Returns:
            The relationship, or None when the topics are unrelated.
        """
        user = normalize_term(user_topic)
        content = normalize_term(content_topic)
        if not user or not content:
            return None
        if user == content:
            return TopicRelationship.EXACT
        if user in content:
            return TopicRelationship.NARROWER_TERM
        if content in user:
            return TopicRelationship.BROADER_TERM
        if self._synonyms.are_synonyms(user, content):
            return TopicRelationship.SYNONYM
        return None

    def match_one(
        self, content_id: str, user_topics: Sequence[str], content_topics: Sequence[str]
    ) -> TopicMatchResult:
        """Match one content item's topics against the user's topics."""
        users = _unique_terms(user_topics)
        contents = _unique_terms(content_topics)

        pairs: list[TopicPair] = []
        for user_topic in users:
            for content_topic in contents:
                relationship = self.classify(user_topic, content_topic)
                if relationship is not None:
                    pairs.append(
                        TopicPair(
                            user_topic=user_topic,
                            content_topic=content_topic,
                            relationship=relationship,
                        )
                    )

        score = min(
            len(pairs) * self._config.keyword_increment, self._config.keyword_score_cap
        )
        return TopicMatchResult(id=content_id, score=round(score, 4), pairs=pairs)

    def match(
        self, user_topics: Sequence[str], content_topic_sets: Mapping[str, Sequence[str]]
    ) -> list[TopicMatchResult]:
        """Match every content item, preserving input order.

        Args:
            user_topics: The user's interest topics.
            content_topic_sets: Content ID to that content's topics.

        Returns:
            One result per content ID.
        """
        return [
            self.match_one(content_id, user_topics, topics)
            for content_id, topics in content_topic_sets.items()
        ]
