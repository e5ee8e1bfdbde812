"""Shared data-model primitives."""

from src.data_model.base import (
    StrictBaseModel,
    WireModel,
    days_between,
    ensure_utc,
    round_half_up,
    utc_now,
)


__all__ = [
    "StrictBaseModel",
    "WireModel",
    "days_between",
    "ensure_utc",
    "round_half_up",
    "utc_now",
]
