"""
Per-track scoring factors: genre, artist, mood, novelty, and the two multipliers.

Each factor is a small pure function of (track, profile[, config]) so it can be
tested and logged on its own. genre/artist/mood/novelty are in [0, 1];
time relevance and completion boost are multipliers around 1.0.
"""

from datetime import datetime
from typing import List, Optional

from ...models.config import DJConfig, DEFAULT_CONFIG
from ...models.profile import TasteProfile
from ...models.track import Track
from ...utils.time_of_day import time_slot_for

# Rank-based match values: index 0 is the user's #1 preference.
GENRE_RANK_SCORES = (1.0, 0.8)
GENRE_LOWER_RANK_SCORE = 0.6
ARTIST_TOP_SCORE = 1.0
ARTIST_OTHER_SCORE = 0.7


def _rank_index(value: Optional[str], ranked: List[str]) -> Optional[int]:
    """Case-insensitive index of value in ranked, or None."""
    if not value:
        return None
    needle = value.lower()
    for index, candidate in enumerate(ranked):
        if candidate.lower() == needle:
            return index
    return None


def genre_match(track: Track, profile: TasteProfile) -> float:
    """1.0 for the top genre, 0.8 for the second, 0.6 for any lower-ranked match, else 0."""
    index = _rank_index(track.genre, profile.top_genres)
    if index is None:
        return 0.0
    if index < len(GENRE_RANK_SCORES):
        return GENRE_RANK_SCORES[index]
    return GENRE_LOWER_RANK_SCORE


def artist_match(track: Track, profile: TasteProfile) -> float:
    """1.0 for the top artist, 0.7 for any other top artist, else 0."""
    index = _rank_index(track.artist, profile.top_artists)
    if index is None:
        return 0.0
    return ARTIST_TOP_SCORE if index == 0 else ARTIST_OTHER_SCORE


def mood_match(track: Track, profile: TasteProfile) -> float:
    if not track.mood or not profile.mood_preference:
        return 0.0
    return 1.0 if track.mood in profile.mood_preference else 0.0


def novelty(profile: TasteProfile, config: DJConfig = DEFAULT_CONFIG) -> float:
    """
    Novelty scaled by discovery rate: 1.0 * (0.5 + discovery_rate * 0.5).

    Below low_discovery_threshold it is multiplied again by low_discovery_penalty,
    so low-discovery users are reduced twice (e.g. 0.3 -> 0.65 * 0.7 = 0.455).
    """
    value = 1.0 * (0.5 + profile.discovery_rate * 0.5)
    if profile.discovery_rate < config.low_discovery_threshold:
        value *= config.low_discovery_penalty
    return max(0.0, min(1.0, value))


def time_relevance(
    profile: TasteProfile,
    now: datetime,
    config: DJConfig = DEFAULT_CONFIG,
) -> float:
    """Boost when the current time-of-day bucket is one of the user's top listening buckets."""
    slot = time_slot_for(now, config.timezone)
    if slot in profile.listening_time_of_day:
        return config.time_match_boost
    return config.time_mismatch_boost


def completion_boost(profile: TasteProfile, config: DJConfig = DEFAULT_CONFIG) -> float:
    """0.8 + avg_completion_rate * 0.4, i.e. in [0.8, 1.2]."""
    return config.completion_boost_base + profile.avg_completion_rate * config.completion_boost_range
