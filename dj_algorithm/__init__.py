"""
Audiora DJ recommendation algorithm

Single entry point for the algorithm package:
- models/: DJConfig, PlayEvent, Track, TasteProfile, TrackScore, GeneratedPlaylist
- stages/: taste_profile, candidate_pool, ranking, playlist, orchestrator
- utils/: genre/mood normalization, time-of-day buckets
"""

from .models import (
    DEFAULT_CONFIG,
    DEFAULT_WEIGHTS,
    DJConfig,
    GeneratedPlaylist,
    PlayEvent,
    PlaylistMetadata,
    SessionWeights,
    TasteProfile,
    Track,
    TrackScore,
    resolve_config,
)
from .stages import (
    CandidatePoolOptions,
    assemble_playlist,
    build_taste_profile,
    clamp_session_length,
    create_playlist_tracks,
    get_candidate_pool,
    pool_limits,
    score_candidates,
    shuffle_top_tracks,
)
from .utils import normalize_genre, normalize_mood

__all__ = [
    "CandidatePoolOptions",
    "DEFAULT_CONFIG",
    "DEFAULT_WEIGHTS",
    "DJConfig",
    "GeneratedPlaylist",
    "PlayEvent",
    "PlaylistMetadata",
    "SessionWeights",
    "TasteProfile",
    "Track",
    "TrackScore",
    "assemble_playlist",
    "build_taste_profile",
    "clamp_session_length",
    "create_playlist_tracks",
    "get_candidate_pool",
    "normalize_genre",
    "normalize_mood",
    "pool_limits",
    "resolve_config",
    "score_candidates",
    "shuffle_top_tracks",
]
