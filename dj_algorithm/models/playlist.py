"""
Playlist model — the generated, cacheable result of one pipeline run.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from .track import Track

DEFAULT_VIBE_DESCRIPTION = "Personalized mix based on your taste"
FALLBACK_VIBE_DESCRIPTION = "Trending tracks to get you started"


class PlaylistMetadata(BaseModel):
    avg_completion_rate: float = 0.0
    top_genres: List[str] = Field(default_factory=list)
    top_artists: List[str] = Field(default_factory=list)


class GeneratedPlaylist(BaseModel):
    """A generated playlist for one user and requested session length."""

    user_id: str
    generated_at: datetime
    tracks: List[Track]
    session_length: int
    vibe_description: str = DEFAULT_VIBE_DESCRIPTION
    metadata: PlaylistMetadata = Field(default_factory=PlaylistMetadata)
