"""
Taste profile model — bounded summary of a user's listening behavior.

Computed on demand from recent play events and never persisted.
"""

from typing import List

from pydantic import BaseModel, Field


class TasteProfile(BaseModel):
    """
    Scoring input derived from listening history.

    Lists are rank-ordered (best first). skip_heavy_genres has set semantics
    but is kept as a list for stable serialization.
    """

    top_genres: List[str] = Field(default_factory=list)
    top_artists: List[str] = Field(default_factory=list)
    avg_completion_rate: float = Field(0.0, ge=0.0, le=1.0)
    skip_heavy_genres: List[str] = Field(default_factory=list)
    listening_time_of_day: List[str] = Field(default_factory=list)
    mood_preference: List[str] = Field(default_factory=list)
    discovery_rate: float = Field(1.0, ge=0.0, le=1.0)

    @classmethod
    def empty(cls) -> "TasteProfile":
        """Cold-start profile: no preferences, discovery rate 1."""
        return cls(discovery_rate=1.0)

    @property
    def is_cold_start(self) -> bool:
        return not self.top_genres
