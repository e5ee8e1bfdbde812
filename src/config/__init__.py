"""Scoring configuration loading and validation."""

from src.config.loader import (
    ConfigValidationError,
    ScoringConfigLoader,
    load_scoring_config,
)
from src.config.schemas.scoring import ScoringConfig


__all__ = [
    "ConfigValidationError",
    "ScoringConfig",
    "ScoringConfigLoader",
    "load_scoring_config",
]
