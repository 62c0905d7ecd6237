"""Shared utilities for normalization and time-of-day bucketing."""

from .normalize import (
    GENRE_MAP,
    MOOD_MAP,
    capitalize_first,
    normalize_genre,
    normalize_mood,
)
from .time_of_day import TIME_SLOTS, local_hour, time_of_day, time_slot_for

__all__ = [
    "GENRE_MAP",
    "MOOD_MAP",
    "TIME_SLOTS",
    "capitalize_first",
    "local_hour",
    "normalize_genre",
    "normalize_mood",
    "time_of_day",
    "time_slot_for",
]
