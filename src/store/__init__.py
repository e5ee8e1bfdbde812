"""SQLite health store.

This module provides persistent storage for:
- Per-user topic interests with atomic mention upserts
- The specialist directory used by the recommendation pipeline
- The content catalogue ranked into personalized feeds
"""

from src.store.errors import ConnectionError, MigrationError, StoreError
from src.store.metrics import StoreMetrics
from src.store.models import (
    InterestEventType,
    InterestUpsertResult,
    UserInterest,
    normalize_topic,
)
from src.store.store import HealthStore, decayed_interest_score, record_context_topics


__all__ = [
    # Errors
    "ConnectionError",
    "MigrationError",
    "StoreError",
    # Metrics
    "StoreMetrics",
    # Models
    "InterestEventType",
    "InterestUpsertResult",
    "UserInterest",
    "normalize_topic",
    # Store
    "HealthStore",
    "decayed_interest_score",
    "record_context_topics",
]
