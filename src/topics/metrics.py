"""Metrics collection for topic matching."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class TopicMatchMetrics:
    """Metrics for topic matching operations.

    Attributes:
        semantic_calls: Semantic strategy attempts.
        semantic_successes: Semantic attempts that returned a result.
        keyword_calls: Keyword strategy runs (direct or fallback).
        fallback_total: Times the semantic strategy fell back.
        fallbacks_by_reason: Fallback count per exception type.
    """

    semantic_calls: int = 0
    semantic_successes: int = 0
    keyword_calls: int = 0
    fallback_total: int = 0
    fallbacks_by_reason: dict[str, int] = field(default_factory=dict)

    _instance: ClassVar["TopicMatchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "TopicMatchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_semantic_call(self) -> None:
        """Record a semantic strategy attempt."""
        self.semantic_calls += 1

    def record_semantic_success(self) -> None:
        """Record a successful semantic strategy run."""
        self.semantic_successes += 1

    def record_keyword_call(self) -> None:
        """Record a keyword strategy run."""
        self.keyword_calls += 1

    def record_fallback(self, reason: str) -> None:
        """Record a semantic-to-keyword fallback.

        Args:
            reason: Short reason, usually the exception class name.
        """
        self.fallback_total += 1
        self.fallbacks_by_reason[reason] = self.fallbacks_by_reason.get(reason, 0) + 1

    def to_dict(self) -> dict[str, object]:
        """Export metrics as dictionary."""
        return {
            "semantic_calls": self.semantic_calls,
            "semantic_successes": self.semantic_successes,
            "keyword_calls": self.keyword_calls,
            "fallback_total": self.fallback_total,
            "fallbacks_by_reason": dict(self.fallbacks_by_reason),
        }
