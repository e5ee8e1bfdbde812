"""Constants for interest bookkeeping."""

from typing import Final


MAX_INTEREST_SCORE: Final = 100.0
MAX_CONTEXT_LENGTH: Final = 100

NEW_INTEREST_SCORE: Final = 50.0
MENTION_SCORE_INCREMENT: Final = 10.0

# Top-interest ranking: 0.4 x recency + 0.6 x frequency, both on 0..100
RECENCY_WEIGHT: Final = 0.4
FREQUENCY_WEIGHT: Final = 0.6
RECENCY_HORIZON_DAYS: Final = 100.0
FREQUENCY_POINTS_PER_MENTION: Final = 10.0

DEFAULT_TOP_INTERESTS: Final = 5
DEFAULT_CONTENT_LIMIT: Final = 100
DEFAULT_GENERAL_POOL: Final = ("general", "physician", "family")
