"""
Main scoring orchestration: weighted factor sum with completion and time boosts.

final_score = clamp(weighted_sum * completion_boost * time_relevance, 0, 1)

Candidates are processed in fixed-size batches for pacing; batching never
changes a score. Submodules used: factors.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ...models.config import DJConfig, DEFAULT_CONFIG
from ...models.profile import TasteProfile
from ...models.scoring import DEFAULT_WEIGHTS, ScoreBreakdown, SessionWeights, TrackScore
from ...models.track import Track

from .factors import (
    artist_match,
    completion_boost,
    genre_match,
    mood_match,
    novelty,
    time_relevance,
)

logger = logging.getLogger(__name__)


def resolve_weights(
    weights: Optional[SessionWeights],
    config: DJConfig = DEFAULT_CONFIG,
) -> SessionWeights:
    """Supplied weights, else the config defaults (0.4 / 0.3 / 0.2 / 0.1 unless overridden)."""
    if weights is not None:
        return weights
    if config is DEFAULT_CONFIG:
        return DEFAULT_WEIGHTS
    return SessionWeights(
        genre_match=config.weight_genre_match,
        artist_match=config.weight_artist_match,
        mood_match=config.weight_mood_match,
        novelty=config.weight_novelty,
    )


def score_track(
    track: Track,
    profile: TasteProfile,
    weights: SessionWeights,
    now: datetime,
    config: DJConfig = DEFAULT_CONFIG,
    position: int = 0,
) -> TrackScore:
    """Score one candidate against the profile."""
    breakdown = ScoreBreakdown(
        genre_match=genre_match(track, profile),
        artist_match=artist_match(track, profile),
        mood_match=mood_match(track, profile),
        novelty=novelty(profile, config),
        time_relevance=time_relevance(profile, now, config),
    )
    weighted_sum = (
        breakdown.genre_match * weights.genre_match
        + breakdown.artist_match * weights.artist_match
        + breakdown.mood_match * weights.mood_match
        + breakdown.novelty * weights.novelty
    )
    final = weighted_sum * completion_boost(profile, config) * breakdown.time_relevance
    return TrackScore(
        track=track,
        final_score=max(0.0, min(1.0, final)),
        breakdown=breakdown,
        position=position,
    )


def score_candidates(
    candidates: List[Track],
    profile: TasteProfile,
    weights: Optional[SessionWeights] = None,
    config: DJConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> List[TrackScore]:
    """
    Score every candidate, preserving pool order (position = index in candidates).

    Pure for fixed (candidates, profile, weights, config, now); when now is None
    the current UTC time is used for time relevance.
    """
    now = now or datetime.now(timezone.utc)
    weights = resolve_weights(weights, config)
    batch_size = config.score_batch_size

    scored: List[TrackScore] = []
    for start in range(0, len(candidates), batch_size):
        batch = candidates[start:start + batch_size]
        for offset, track in enumerate(batch):
            scored.append(score_track(track, profile, weights, now, config, position=start + offset))

    if scored:
        first = scored[0]
        logger.debug(
            "[scoring] %s by %s score=%.4f breakdown=%s genre=%s mood=%s",
            first.track.title, first.track.artist, first.final_score,
            first.breakdown.model_dump(), first.track.genre, first.track.mood,
        )
    return scored
