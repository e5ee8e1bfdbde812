"""Metrics collection for the health store."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class StoreMetrics:
    """Metrics for store operations.

    Attributes:
        interests_created_total: Interests inserted for the first time.
        interests_updated_total: Repeat mentions of existing interests.
        specialists_saved_total: Specialist records written.
        content_saved_total: Content records written.
        db_tx_duration_ms: Cumulative transaction duration in milliseconds.
        db_tx_count: Number of committed transactions.
    """

    interests_created_total: int = 0
    interests_updated_total: int = 0
    specialists_saved_total: int = 0
    content_saved_total: int = 0
    db_tx_duration_ms: float = 0.0
    db_tx_count: int = 0

    _instance: ClassVar["StoreMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "StoreMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_interest(self, *, created: bool) -> None:
        """Record an interest upsert."""
        if created:
            self.interests_created_total += 1
        else:
            self.interests_updated_total += 1

    def record_specialist_saved(self) -> None:
        """Record a specialist write."""
        self.specialists_saved_total += 1

    def record_content_saved(self) -> None:
        """Record a content write."""
        self.content_saved_total += 1

    def record_tx_duration(self, duration_ms: float) -> None:
        """Record transaction duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.db_tx_duration_ms += duration_ms
        self.db_tx_count += 1

    @property
    def avg_tx_duration_ms(self) -> float:
        """Average transaction duration in milliseconds."""
        if self.db_tx_count == 0:
            return 0.0
        return self.db_tx_duration_ms / self.db_tx_count

    def to_dict(self) -> dict[str, float | int]:
        """Export metrics as dictionary."""
        return {
            "interests_created_total": self.interests_created_total,
            "interests_updated_total": self.interests_updated_total,
            "specialists_saved_total": self.specialists_saved_total,
            "content_saved_total": self.content_saved_total,
            "db_tx_duration_ms": self.db_tx_duration_ms,
            "db_tx_count": self.db_tx_count,
        }


@dataclass
class TransactionContext:
    """Context for a single transaction with timing.

    Attributes:
        tx_id: Unique transaction identifier.
        start_time_ns: Start time in nanoseconds.
        operation: The operation being performed.
        affected_rows: Rows written inside the transaction.
    """

    tx_id: str
    start_time_ns: int
    operation: str
    affected_rows: int = field(default=0)

    def add_affected_rows(self, rows: int) -> None:
        """Add to the affected row count.

        Args:
            rows: Number of rows affected.
        """
        self.affected_rows += rows
