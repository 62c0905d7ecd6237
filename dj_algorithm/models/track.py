"""
Track model — normalized catalog record used as a recommendation candidate.

Used by the candidate pool, scoring, and playlist stages instead of raw catalog dicts.
Built from catalog dicts via Track.model_validate(d).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Track(BaseModel):
    """
    Track payload used across the pipeline stages.

    duration is in seconds. genre and mood are normalized at ingestion
    (see utils.normalize). All fields except id are optional so partial
    catalog data still validates.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    artist: str = ""
    artist_id: str = ""
    genre: Optional[str] = None
    mood: Optional[str] = None
    duration: int = 0
    stream_url: str = ""
    artwork: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    play_count: Optional[int] = None
    favorite_count: Optional[int] = None
    repost_count: Optional[int] = None
    created_at: Optional[str] = None
    release_date: Optional[str] = None
    permalink: Optional[str] = None
    artist_handle: Optional[str] = None
    artist_bio: Optional[str] = None
    artist_location: Optional[str] = None
    artist_follower_count: Optional[int] = None


def ensure_tracks(tracks: List[Union[Dict[str, Any], "Track"]]) -> List["Track"]:
    """Convert list of dicts or Tracks to list of Track models for use in the pipeline."""
    return [
        Track.model_validate(t) if isinstance(t, dict) else t
        for t in tracks
    ]
