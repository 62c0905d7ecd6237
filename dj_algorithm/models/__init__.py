"""Data models for the recommendation pipeline."""

from .config import DEFAULT_CONFIG, DJConfig, resolve_config
from .play_event import PlayEvent, ensure_play_events
from .playlist import (
    DEFAULT_VIBE_DESCRIPTION,
    FALLBACK_VIBE_DESCRIPTION,
    GeneratedPlaylist,
    PlaylistMetadata,
)
from .profile import TasteProfile
from .scoring import DEFAULT_WEIGHTS, ScoreBreakdown, SessionWeights, TrackScore
from .track import Track, ensure_tracks

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_VIBE_DESCRIPTION",
    "DEFAULT_WEIGHTS",
    "DJConfig",
    "FALLBACK_VIBE_DESCRIPTION",
    "GeneratedPlaylist",
    "PlayEvent",
    "PlaylistMetadata",
    "ScoreBreakdown",
    "SessionWeights",
    "TasteProfile",
    "Track",
    "TrackScore",
    "ensure_play_events",
    "ensure_tracks",
    "resolve_config",
]
