"""
Scoring model — session weights, per-track score breakdown, and TrackScore.

Contains:
- SessionWeights: factor weights, optionally overridden per session by the advisor
- ScoreBreakdown: individual factor values for one track
- TrackScore: a candidate with its final score and pool position
"""

from pydantic import BaseModel, Field

from .track import Track


class SessionWeights(BaseModel):
    """Weights for the four scored factors. Each in [0, 1]; they need not sum to 1."""

    genre_match: float = Field(0.4, ge=0.0, le=1.0)
    artist_match: float = Field(0.3, ge=0.0, le=1.0)
    mood_match: float = Field(0.2, ge=0.0, le=1.0)
    novelty: float = Field(0.1, ge=0.0, le=1.0)


DEFAULT_WEIGHTS = SessionWeights()


class ScoreBreakdown(BaseModel):
    genre_match: float
    artist_match: float
    mood_match: float
    novelty: float
    time_relevance: float


class TrackScore(BaseModel):
    """
    A candidate with all its scoring components.

    position is the candidate's index in the pool (genre → artist → discovery
    order) and breaks ties between equal final scores.
    """

    track: Track
    final_score: float = Field(ge=0.0, le=1.0)
    breakdown: ScoreBreakdown
    position: int = 0
