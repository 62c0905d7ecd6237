"""
Scoring: weighted genre/artist/mood/novelty factors with completion and time boosts.

Public API: score_candidates, score_track, resolve_weights.
- core: batched scoring of a candidate pool.
- factors: the individual factor functions.
"""

from .core import resolve_weights, score_candidates, score_track
from .factors import (
    artist_match,
    completion_boost,
    genre_match,
    mood_match,
    novelty,
    time_relevance,
)

__all__ = [
    "artist_match",
    "completion_boost",
    "genre_match",
    "mood_match",
    "novelty",
    "resolve_weights",
    "score_candidates",
    "score_track",
    "time_relevance",
]
