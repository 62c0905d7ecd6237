"""Pipeline stages: taste profile, candidate pool, scoring, playlist assembly, orchestration."""

from .candidate_pool import CandidatePoolOptions, get_candidate_pool, pool_limits
from .orchestrator import create_playlist_tracks
from .playlist import (
    assemble_playlist,
    clamp_session_length,
    rank_scored,
    shuffle_top_tracks,
)
from .ranking import score_candidates
from .taste_profile import build_taste_profile

__all__ = [
    "CandidatePoolOptions",
    "assemble_playlist",
    "build_taste_profile",
    "clamp_session_length",
    "create_playlist_tracks",
    "get_candidate_pool",
    "pool_limits",
    "rank_scored",
    "score_candidates",
    "shuffle_top_tracks",
]
