"""
Pipeline orchestrator — runs scoring then playlist assembly over an assembled
candidate pool.

The main entry point is create_playlist_tracks, which scores the pool against
the profile and returns the final ordered tracks plus the full scored list
(for logging/inspection). Catalog and history I/O stay in the service layer.
"""

import random
from datetime import datetime
from typing import List, Optional, Tuple

from ..models.config import DJConfig, resolve_config
from ..models.profile import TasteProfile
from ..models.scoring import SessionWeights, TrackScore
from ..models.track import Track, ensure_tracks
from .playlist import assemble_playlist
from .ranking import score_candidates


def create_playlist_tracks(
    candidates: List[Track],
    profile: TasteProfile,
    session_length: int,
    weights: Optional[SessionWeights] = None,
    config: Optional[DJConfig] = None,
    max_session_length: Optional[int] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[List[Track], List[TrackScore]]:
    """
    Score candidates then assemble the playlist.

    Returns:
        tracks: ordered playlist tracks (head partially shuffled)
        scored: every candidate's TrackScore in pool order
    """
    config = resolve_config(config)
    candidates = ensure_tracks(candidates)
    scored = score_candidates(candidates, profile, weights, config, now=now)
    tracks = assemble_playlist(
        scored,
        session_length,
        max_session_length if max_session_length is not None else config.max_session_length,
        rng=rng,
        shuffle_top_k=config.shuffle_top_k,
    )
    return tracks, scored
