"""
Play event model — one playback of a track by a user (start, then completion or skip).

Read by the taste profile stage in bounded, most-recent-first slices.
Built from store dicts via PlayEvent.model_validate(d) or ensure_play_events().
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class PlayEvent(BaseModel):
    """
    A single listening event.

    track_duration and duration_played are in seconds.
    completed / skipped are set when playback finishes naturally or is skipped;
    an event with neither flag set is still "active".
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    user_id: str
    track_id: str
    title: str = ""
    artist: str = ""
    genre: Optional[str] = None
    mood: Optional[str] = None
    track_duration: int = 0
    started_at: datetime
    duration_played: int = 0
    completed: bool = False
    skipped: bool = False
    completed_at: Optional[datetime] = None
    skipped_at: Optional[datetime] = None

    @field_validator("started_at", "completed_at", "skipped_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps from stores are read as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_active(self) -> bool:
        return not self.completed and not self.skipped


def ensure_play_events(
    items: List[Union[Dict, "PlayEvent"]],
) -> List["PlayEvent"]:
    """Convert list of dicts or PlayEvents to list of PlayEvent models for the pipeline."""
    return [
        PlayEvent.model_validate(e) if isinstance(e, dict) else e
        for e in items
    ]
